"""Classifies attach errors so the strategy chain knows how to react."""

from ...models import FailureReason


class MountErrorClassifier:
    """Maps an exception message onto a FailureReason by indicator matching."""

    ALREADY_MOUNTED_INDICATORS = {
        "already in use",
        "already mounted",
        "is already mounted",
        "mountpoint is not empty",
        "device or resource busy",
    }

    CAPABILITY_INDICATORS = {
        "fuse",
        "modprobe",
        "/dev/fuse",
        "operation not permitted",
        "command not found",
        "no such device",
    }

    CREDENTIAL_INDICATORS = {
        "credentials",
        "missingcredentials",
        "access key",
        "passwd_file",
        "invalidaccesskeyid",
    }

    def classify(self, error: BaseException) -> FailureReason:
        error_str = str(error).lower()
        stderr = getattr(error, "stderr", "")
        if stderr:
            error_str = f"{error_str} {stderr.lower()}"

        # Conflict first: s3fs reports "busy" on an attached path that also mentions fuse
        if self._matches(error_str, self.ALREADY_MOUNTED_INDICATORS):
            return FailureReason.ALREADY_MOUNTED_CONFLICT
        if self._matches(error_str, self.CAPABILITY_INDICATORS):
            return FailureReason.CAPABILITY_UNAVAILABLE
        if self._matches(error_str, self.CREDENTIAL_INDICATORS):
            return FailureReason.CREDENTIALS_MISSING
        return FailureReason.OTHER

    @staticmethod
    def _matches(error_str: str, indicators) -> bool:
        return any(indicator in error_str for indicator in indicators)
