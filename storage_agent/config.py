from pathlib import Path
from typing import Optional, Tuple

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Object storage account
    storage_account_id: str = ""
    storage_bucket_name: str = "agent-data"
    storage_domain: str = "r2.cloudflarestorage.com"
    # Overrides the account-derived endpoint for direct object API calls
    storage_endpoint_url: str = ""

    # Explicit credentials (AWS_* wins over STORAGE_* when both pairs are set)
    storage_access_key_id: str = ""
    storage_secret_access_key: str = ""
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""

    # Mount
    mount_path: str = "/data/agent"
    mount_fs_signature: str = "s3fs"
    s3fs_passwd_file: str = "/etc/passwd-s3fs"

    # Source layout inside the container
    source_root: str = "/root"
    config_dir: str = ".agent"
    config_file: str = "agent.json"
    legacy_config_dir: str = ".agentbot"
    legacy_config_file: str = "agentbot.json"
    workspace_dir: str = "workspace"
    skills_dir: str = "skills"

    # Process polling (seconds)
    poll_interval_seconds: float = 0.2
    probe_timeout_seconds: float = 2.0
    file_check_timeout_seconds: float = 5.0
    mount_timeout_seconds: float = 30.0
    copy_timeout_seconds: float = 30.0
    archive_timeout_seconds: float = 60.0

    # Gateway worker
    gateway_command: str = "/usr/local/bin/start-gateway.sh"
    gateway_host: str = "127.0.0.1"
    gateway_port: int = 18789
    gateway_startup_timeout_seconds: float = 180.0
    status_port_check_seconds: float = 1.0

    # AI providers (at least one is required to start the gateway)
    anthropic_api_key: str = ""
    openai_api_key: str = ""
    ai_gateway_api_key: str = ""

    # Restore endpoint (GET /internal/backup); empty disables it
    backup_restore_token: str = ""

    # Logging
    log_level: str = "INFO"
    log_file_path: str = "logs/storage_agent.log"
    log_retention_days: int = 30

    model_config = SettingsConfigDict(env_file="settings.env", extra="ignore")

    @property
    def endpoint(self) -> str:
        return f"https://{self.storage_account_id}.{self.storage_domain}"

    @property
    def object_store_endpoint(self) -> Optional[str]:
        """Endpoint for the object API, or None to let boto3 use its default."""
        if self.storage_endpoint_url:
            return self.storage_endpoint_url
        if self.storage_account_id:
            return self.endpoint
        return None

    @property
    def explicit_credentials(self) -> Optional[Tuple[str, str]]:
        """Return (access_key_id, secret_access_key) if a complete pair is configured."""
        if self.aws_access_key_id and self.aws_secret_access_key:
            return self.aws_access_key_id, self.aws_secret_access_key
        if self.storage_access_key_id and self.storage_secret_access_key:
            return self.storage_access_key_id, self.storage_secret_access_key
        return None

    @property
    def has_explicit_credentials(self) -> bool:
        return self.explicit_credentials is not None

    @property
    def has_ai_provider(self) -> bool:
        return bool(self.anthropic_api_key or self.openai_api_key or self.ai_gateway_api_key)

    @property
    def log_directory(self) -> Path:
        """Returns log directory as a Path"""
        return Path(self.log_file_path).parent
