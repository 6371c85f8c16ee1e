"""Configuration settings for unmake.

Uses pydantic-settings for config parsing from environment variables, a
.env file and an optional unmake.yaml in the project root. Configuration
precedence: explicit overrides > env vars > .env > unmake.yaml > defaults.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, ValidationError, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from unmake.errors import ConfigurationError

CONFIG_FILE = "unmake.yaml"


def _overlaps(a: Path, b: Path) -> bool:
    """Return True if a and b are the same directory or one contains the other."""
    a = a.resolve()
    b = b.resolve()
    return a == b or a in b.parents or b in a.parents


class Settings(BaseSettings):
    """Build configuration, resolved once per run.

    Settings are loaded from environment variables with the UNMAKE_ prefix.
    List-valued settings are given as JSON arrays in the environment.
    """

    model_config = SettingsConfigDict(
        env_prefix="UNMAKE_",
        env_file=".env",
        env_file_encoding="utf-8",
        yaml_file=CONFIG_FILE,
        extra="ignore",
        frozen=True,
    )

    # Target and toolchain
    target: str = Field(default="build", description="Name of the linked binary")
    compiler: str = Field(default="cc", description="Compiler program")
    linker: str = Field(default="cc", description="Linker program")
    cflags: list[str] = Field(
        default_factory=lambda: ["-Wall"],
        description="Warning and optimization flags passed to every compile",
    )
    include_flags: list[str] = Field(
        default_factory=list,
        description="Extra include flags appended after -I<inc_dir>",
    )
    lib_flags: list[str] = Field(
        default_factory=list,
        description="Libraries to link, e.g. -lm",
    )
    ld_flags: list[str] = Field(
        default_factory=list,
        description="Extra linker flags",
    )
    rpath: bool = Field(
        default=True,
        description="Embed $ORIGIN/<lib> as the binary's runtime search path",
    )

    # Layout
    src_dir: Path = Field(default=Path("src"), description="Source directory")
    src_ext: str = Field(default=".c", description="Source file extension")
    inc_dir: Path = Field(default=Path("include"), description="Header directory")
    obj_dir: Path = Field(default=Path("obj"), description="Object directory")
    bin_dir: Path = Field(default=Path("bin"), description="Binary directory")
    lib_dir: Path = Field(default=Path("lib"), description="Library directory")

    # Side commands
    clean_command: list[str] = Field(
        default_factory=lambda: ["rm", "-rf"],
        description="Removal command applied to the object and binary directories",
    )
    init_command: str = Field(
        default="git init",
        description="Additional command run by -init (empty to disable)",
    )
    run_prefix: list[str] = Field(
        default_factory=list,
        description="Tokens placed before the binary path when running",
    )
    run_suffix: list[str] = Field(
        default_factory=list,
        description="Tokens placed after the binary path when running",
    )

    # Self-rebuild
    self_source: str = Field(
        default="",
        description="Source of the orchestrator itself (empty disables self-rebuild)",
    )
    self_compiler: str = Field(
        default="cc",
        description="Compiler used to rebuild the orchestrator",
    )
    self_binary: str = Field(
        default="",
        description="Executable to rebuild and relaunch (defaults to argv[0])",
    )

    # Build record
    compile_commands: bool = Field(
        default=True,
        description="Write a compile_commands.json after every build",
    )
    compile_commands_path: Path = Field(
        default=Path("compile_commands.json"),
        description="Location of the build record",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    @model_validator(mode="after")
    def _check_layout(self) -> "Settings":
        if not self.src_ext.startswith(".") or len(self.src_ext) < 2:
            raise ValueError(f"src_ext must look like '.c', got {self.src_ext!r}")
        if not self.target or Path(self.target).name != self.target:
            raise ValueError(f"target must be a bare file name, got {self.target!r}")
        if not self.compiler or not self.linker:
            raise ValueError("compiler and linker must not be empty")
        if not self.clean_command:
            raise ValueError("clean_command must not be empty")
        # Clean targets come only from obj_dir and bin_dir
        operands = [t for t in self.clean_command[1:] if not t.startswith("-")]
        if operands:
            raise ValueError(
                "clean_command may only hold a program and its options, "
                f"got operands {operands}"
            )

        # Clean must never reach hand-written sources or libraries
        for cleaned in (self.obj_dir, self.bin_dir):
            for protected in (self.src_dir, self.inc_dir, self.lib_dir):
                if _overlaps(cleaned, protected):
                    raise ValueError(
                        f"cleaned directory {cleaned} overlaps protected "
                        f"directory {protected}"
                    )
        return self

    @property
    def target_path(self) -> Path:
        """Path of the linked binary."""
        return self.bin_dir / self.target

    @property
    def bin_lib_dir(self) -> Path:
        """Library directory beside the binary."""
        return self.bin_dir / self.lib_dir.name

    @property
    def directories(self) -> list[Path]:
        """Every directory the orchestrator creates on demand."""
        return [
            self.src_dir,
            self.obj_dir,
            self.bin_dir,
            self.inc_dir,
            self.bin_lib_dir,
            self.lib_dir,
        ]

    @property
    def cleaned_directories(self) -> list[Path]:
        """The only directories a clean may remove."""
        return [self.obj_dir, self.bin_dir]


def get_settings(**overrides: object) -> Settings:
    """Load the build configuration.

    Args:
        **overrides: Explicit values taking precedence over every source.

    Returns:
        Settings instance.

    Raises:
        ConfigurationError: If any value fails validation.
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def print_settings_json(settings: Settings | None = None) -> str:
    """Render effective settings as JSON.

    Args:
        settings: Optional settings instance; uses default if not provided.

    Returns:
        JSON string of effective settings.
    """
    if settings is None:
        settings = get_settings()
    return settings.model_dump_json(indent=2)


__all__ = ["CONFIG_FILE", "Settings", "get_settings", "print_settings_json"]
