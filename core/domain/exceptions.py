"""
Domain exceptions.

Domain exceptions represent business rule violations
and domain-specific error conditions.
"""


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    retryable = False

    def __init__(self, message: str, code: str = None):
        """
        Initialize domain exception.

        Args:
            message: Human-readable error message
            code: Machine-readable error code
        """
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class LicenseKeyException(DomainException):
    """Base exception for license-key errors."""

    pass


class LicenseKeyNotFoundError(LicenseKeyException):
    """Raised when no key matches the supplied string (or ownership)."""

    def __init__(self, message: str = "License key not found"):
        super().__init__(message, code="KEY_NOT_FOUND")


class KeyAlreadyClaimedError(LicenseKeyException):
    """Raised when claiming a key that already has an owner."""

    def __init__(self, message: str = "License key has already been claimed"):
        super().__init__(message, code="KEY_ALREADY_CLAIMED")


class DuplicateActiveKeyError(LicenseKeyException):
    """Raised when a user with an active key tries to claim another."""

    def __init__(self, message: str = "User already has an active license key"):
        super().__init__(message, code="DUPLICATE_ACTIVE_KEY")


class DuplicateKeyStringError(LicenseKeyException):
    """Raised when an insert collides with an existing key string."""

    def __init__(self, message: str = "License key string already exists"):
        super().__init__(message, code="DUPLICATE_KEY")


class KeyNotRegistrationEligibleError(LicenseKeyException):
    """Raised when a key cannot be used to register an account."""

    def __init__(self, message: str = "License key cannot be used for registration"):
        super().__init__(message, code="KEY_NOT_REGISTRATION_ELIGIBLE")


class InvalidDurationError(LicenseKeyException):
    """Raised for a duration outside the supported tiers."""

    def __init__(self, message: str = "Invalid key duration"):
        super().__init__(message, code="INVALID_DURATION")


class InvalidLicenseKeyFormatError(LicenseKeyException):
    """Raised when a key string is empty or malformed."""

    def __init__(self, message: str = "Invalid license key format"):
        super().__init__(message, code="INVALID_KEY_FORMAT")


class AccountException(DomainException):
    """Base exception for account-related errors."""

    pass


class UserNotFoundError(AccountException):
    """Raised when a user is not found."""

    def __init__(self, message: str = "User not found"):
        super().__init__(message, code="USER_NOT_FOUND")


class UserIneligibleError(AccountException):
    """Raised when a user is missing or banned for the requested operation."""

    def __init__(self, message: str = "User is not eligible for this operation"):
        super().__init__(message, code="USER_INELIGIBLE")


class EmailAlreadyRegisteredError(AccountException):
    """Raised when an email address is already in use."""

    def __init__(self, message: str = "Email address is already registered"):
        super().__init__(message, code="EMAIL_ALREADY_REGISTERED")


class InvalidCredentialsError(AccountException):
    """Raised when an email/password pair does not verify."""

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message, code="INVALID_CREDENTIALS")


class InvalidSessionTokenError(AccountException):
    """Raised when a session token is missing, malformed or expired."""

    def __init__(self, message: str = "Invalid or expired session token"):
        super().__init__(message, code="INVALID_SESSION_TOKEN")


class InvalidVerificationCodeError(AccountException):
    """Raised when a verification code is wrong, expired or unverified."""

    def __init__(self, message: str = "Invalid or expired verification code"):
        super().__init__(message, code="INVALID_VERIFICATION_CODE")


class InvalidEmailError(AccountException):
    """Raised when an email address is malformed."""

    def __init__(self, message: str = "Invalid email address"):
        super().__init__(message, code="INVALID_EMAIL")


class WeakPasswordError(AccountException):
    """Raised when a password does not meet the minimum policy."""

    def __init__(self, message: str = "Password is too short"):
        super().__init__(message, code="WEAK_PASSWORD")


class StoreUnavailableError(DomainException):
    """Raised when the record store cannot be reached or times out."""

    retryable = True

    def __init__(self, message: str = "Record store is unavailable"):
        super().__init__(message, code="STORE_UNAVAILABLE")
