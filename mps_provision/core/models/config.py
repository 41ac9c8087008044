"""
Provisioning configuration — what to install and where to look.

Loaded from an optional provision.yml. Every field defaults to the
Chatterbox TTS / Apple Silicon setup, so a missing file means "use
the defaults". The compatibility window itself is not configurable.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator

from mps_provision.core.models.runtime import DependencySpec, RuntimeVersion

DEFAULT_VENV_NAME = "venv-chatterbox-apple-silicon"

_AUXILIARY = (
    "fastapi",
    "uvicorn[standard]",
    "librosa",
    "safetensors",
    "soundfile",
    "pydub",
    "audiotsm",
    "praat-parselmouth",
    "python-multipart",
    "requests",
    "aiofiles",
    "PyYAML",
    "watchdog",
    "unidecode",
    "inflect",
    "tqdm",
)

_PINNED = (
    "conformer==0.3.2",
    "diffusers==0.29.0",
    "resemble-perth==1.0.1",
    "transformers==4.46.3",
)


def _specs(requirements: tuple[str, ...]) -> list[DependencySpec]:
    return [DependencySpec.parse(r) for r in requirements]


class RuntimeSettings(BaseModel):
    """Where and in which order to look for a Python interpreter."""

    preferred: str = "3.12"
    fallbacks: list[str] = Field(default_factory=lambda: ["3.11", "3.10", "3.9"])
    generic: list[str] = Field(default_factory=lambda: ["python3", "python"])
    install_prefixes: list[str] = Field(
        default_factory=lambda: ["/opt/homebrew/bin", "/usr/local/bin", "/usr/bin"]
    )

    @field_validator("preferred")
    @classmethod
    def _preferred_in_window(cls, value: str) -> str:
        version = RuntimeVersion.parse(f"{value}.0")
        if version is None or not version.is_compatible:
            raise ValueError(f"Preferred Python {value} is outside the supported 3.9-3.12 window")
        return value

    @property
    def preferred_command(self) -> str:
        return f"python{self.preferred}"

    @property
    def brew_formula(self) -> str:
        return f"python@{self.preferred}"


class HomebrewSettings(BaseModel):
    """Homebrew install locations and installer source."""

    prefixes: list[str] = Field(default_factory=lambda: ["/opt/homebrew", "/usr/local"])
    install_url: str = "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh"
    profile: str = ".zprofile"


class PackageSettings(BaseModel):
    """The dependency set, in install order."""

    accelerated: list[str] = Field(default_factory=lambda: ["torch", "torchvision", "torchaudio"])
    application: str = "git+https://github.com/resemble-ai/chatterbox.git"
    auxiliary: list[DependencySpec] = Field(default_factory=lambda: _specs(_AUXILIARY))
    pinned: list[DependencySpec] = Field(default_factory=lambda: _specs(_PINNED))
    tokenizer: DependencySpec = Field(default_factory=lambda: DependencySpec.parse("s3tokenizer"))
    interchange: DependencySpec = Field(default_factory=lambda: DependencySpec.parse("onnx==1.16.0"))

    @model_validator(mode="after")
    def _pins_present(self) -> PackageSettings:
        unpinned = [spec.name for spec in self.pinned if not spec.pinned]
        if unpinned:
            raise ValueError(f"Pinned dependencies need an exact ==version: {', '.join(unpinned)}")
        if not self.interchange.pinned:
            raise ValueError(f"Interchange library must be pinned: {self.interchange.name}")
        return self


class ProvisionConfig(BaseModel):
    """Root configuration — loaded from provision.yml or all defaults."""

    venv_name: str = DEFAULT_VENV_NAME
    runtime: RuntimeSettings = Field(default_factory=RuntimeSettings)
    homebrew: HomebrewSettings = Field(default_factory=HomebrewSettings)
    packages: PackageSettings = Field(default_factory=PackageSettings)

    @field_validator("venv_name")
    @classmethod
    def _plain_directory_name(cls, value: str) -> str:
        if not value or "/" in value:
            raise ValueError("venv_name must be a plain directory name")
        return value
