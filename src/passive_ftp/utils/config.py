from functools import lru_cache
from importlib import metadata
from pathlib import Path
from typing import Dict, Optional, Union

import tomlkit
from pydantic_settings import BaseSettings


def _get_project_meta(name: str = "passive-ftp") -> Dict:
    """
    Get name and version from pyproject metadata.
    """
    version = "unknown"
    description = ""
    try:
        with Path("./pyproject.toml").open() as pyproject:
            file_contents = pyproject.read()
        parsed = dict(tomlkit.parse(file_contents))['project']
        name = parsed["name"]
        version = parsed.get("version", "unknown")
        description = parsed.get("description", "")
    except (FileNotFoundError, KeyError):
        # If cannot read the contents of pyproject directly (i.e. installed
        # as a dependency), check installed package using importlib.metadata:
        try:
            dist = metadata.distribution(name)
            name = dist.metadata["Name"]
            version = dist.version
            description = dist.metadata.get("Summary", "")
        except metadata.PackageNotFoundError:
            pass
    return {"name": name, "version": version, "description": description}


PKG_META = _get_project_meta()


class Settings(BaseSettings):
    """
    Settings. Environment variables always take priority over values loaded
    from the dotenv file.
    """

    # Meta
    APP_NAME: str = str(PKG_META["name"])
    APP_VERSION: str = str(PKG_META["version"])
    DESCRIPTION: str = str(PKG_META["description"])

    # Logger
    LOGGER_NAME: str = "passive_ftp"
    LOG_LEVEL: str = "info"
    JSON_LOGS: Union[bool, int, str] = False

    # Connection target, used by the CLI when no option is given
    FTP_HOST: Optional[str] = None
    FTP_PORT: int = 21
    FTP_USERNAME: Optional[str] = None
    FTP_PASSWORD: Optional[str] = None

    # Transport
    SOCKET_TIMEOUT: float = 30.0
    CONNECT_ATTEMPTS: int = 3
    CONTROL_READ_SIZE: int = 2048
    DATA_READ_SIZE: int = 4096
    ENCODING: str = "utf-8"

    # Connect the data channel to the address advertised in the PASV reply.
    # When false the control host is reused, which survives servers behind NAT.
    TRUST_PASV_HOST: bool = True

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


def get_project_root() -> Optional[Path]:
    """Find the project root directory by looking for pyproject.toml"""
    current = Path(__file__).resolve().parent
    while current != current.parent:
        if (current / "pyproject.toml").exists():
            return current
        current = current.parent
    return None


@lru_cache
def get_settings() -> Settings:
    project_root = get_project_root()
    if project_root is None:
        return Settings()

    secrets_dir = project_root / "secrets"
    return Settings(
        _env_file=str(project_root / ".env"),
        _secrets_dir=str(secrets_dir) if secrets_dir.is_dir() else None,
    )

settings = get_settings()
