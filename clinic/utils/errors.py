from fastapi import HTTPException, status


class ClinicError(HTTPException):
    """Domain failure carrying an HTTP status and a machine-readable code."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "BAD_REQUEST"
    default_detail = "Request could not be processed"

    def __init__(self, detail: str | None = None):
        super().__init__(status_code=self.status_code, detail=detail or self.default_detail)


class ValidationFailed(ClinicError):
    code = "VALIDATION_FAILED"
    default_detail = "Missing or invalid fields"


class NotFound(ClinicError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    default_detail = "Not found"


class DuplicateEmail(ClinicError):
    code = "DUPLICATE_EMAIL"
    default_detail = "Doctor with this email already exists"


class InvalidCredentials(ClinicError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "INVALID_CREDENTIALS"
    default_detail = "Invalid email or password"


class NotAuthenticated(ClinicError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "NOT_AUTHENTICATED"
    default_detail = "Login required"


class NotApproved(ClinicError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "NOT_APPROVED"
    default_detail = "Your account is pending approval. Please wait for admin approval."


class Forbidden(ClinicError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"
    default_detail = "You do not have access to this resource"


class InvalidOrExpiredCode(ClinicError):
    code = "INVALID_OR_EXPIRED_CODE"
    default_detail = "Invalid or expired OTP. Please request a new OTP."


class CodeExpired(InvalidOrExpiredCode):
    code = "CODE_EXPIRED"
    default_detail = "OTP has expired. Please request a new OTP."


class FederatedAccountRequired(ValidationFailed):
    code = "FEDERATED_ACCOUNT_REQUIRED"
    default_detail = (
        "Patient with this email already exists and is registered via Google. Please use Google login."
    )


class StorageUploadFailed(ClinicError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "STORAGE_UPLOAD_FAILED"
    default_detail = "Error uploading file. Please try again."


class EmailDispatchFailed(ClinicError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "EMAIL_DISPATCH_FAILED"
    default_detail = "Failed to send email. Please try again later."


class UpstreamUnavailable(ClinicError):
    status_code = status.HTTP_502_BAD_GATEWAY
    code = "UPSTREAM_UNAVAILABLE"
    default_detail = "An upstream service is unavailable"
