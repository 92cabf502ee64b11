"""Configuration models - Pure data structures.

These are domain models for configuration. The actual loading
(I/O) is handled by the shell layer.
"""

from dataclasses import dataclass, field

from src.core.dedup import DedupGranularity
from src.core.earthquake import Source
from src.core.geo import TURKEY_BOUNDS, BoundingBox
from src.core.pagination import DEFAULT_PAGE_SIZE
from src.core.viewport import DensityPolicy


# Archive API serving both providers
ARCHIVE_API_BASE = "https://api.orhanaydogdu.com.tr/deprem"


@dataclass
class ProviderConfig:
    """One upstream provider.

    Attributes:
        name: Provider identifier (a Source value)
        base_url: Archive endpoint URL
        enabled: Whether the provider is queried
    """
    name: str
    base_url: str
    enabled: bool = True


def default_providers() -> list[ProviderConfig]:
    """Kandilli first, then AFAD; on equal magnitudes the first one wins dedup."""
    return [
        ProviderConfig(name=Source.KANDILLI.value, base_url=f"{ARCHIVE_API_BASE}/kandilli/archive"),
        ProviderConfig(name=Source.AFAD.value, base_url=f"{ARCHIVE_API_BASE}/afad/archive"),
    ]


@dataclass
class Config:
    """Application configuration.

    This is a pure data structure - no I/O or side effects.

    Attributes:
        admission_bounds: Records outside this box are discarded
        providers: Upstream providers, in concatenation order
        page_size: Records requested per provider page
        request_timeout_seconds: HTTP timeout per page request
        refresh_interval_seconds: Period of the background refresh
        dedup: Dedup key granularity
        density: Viewport density thresholds
        allowed_origins: CORS origins for the HTTP surfaces
    """
    admission_bounds: BoundingBox = TURKEY_BOUNDS
    providers: list[ProviderConfig] = field(default_factory=default_providers)
    page_size: int = DEFAULT_PAGE_SIZE
    request_timeout_seconds: int = 30
    refresh_interval_seconds: int = 60
    dedup: DedupGranularity = field(default_factory=DedupGranularity)
    density: DensityPolicy = field(default_factory=DensityPolicy)
    allowed_origins: list[str] = field(default_factory=lambda: ["http://localhost:3000"])

    @property
    def enabled_providers(self) -> list[ProviderConfig]:
        return [p for p in self.providers if p.enabled]


@dataclass
class ValidationError:
    """A configuration validation error.

    Attributes:
        field: The field that has an error
        message: Human-readable error description
        severity: 'error' or 'warning'
    """
    field: str
    message: str
    severity: str = "error"


@dataclass
class ValidationResult:
    """Result of validating configuration.

    Attributes:
        valid: True if no errors (warnings are OK)
        errors: List of validation errors/warnings
    """
    valid: bool
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def warnings(self) -> list[ValidationError]:
        """Get only warnings."""
        return [e for e in self.errors if e.severity == "warning"]

    @property
    def critical_errors(self) -> list[ValidationError]:
        """Get only critical errors."""
        return [e for e in self.errors if e.severity == "error"]


def validate_coordinates(lat: float, lon: float, field_name: str) -> list[ValidationError]:
    """Validate latitude/longitude coordinates.

    Pure function.

    Args:
        lat: Latitude value
        lon: Longitude value
        field_name: Name of the field for error messages

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    if not -90 <= lat <= 90:
        errors.append(ValidationError(
            field=field_name,
            message=f"Latitude {lat} out of range [-90, 90]",
        ))

    if not -180 <= lon <= 180:
        errors.append(ValidationError(
            field=field_name,
            message=f"Longitude {lon} out of range [-180, 180]",
        ))

    return errors


def validate_bounds(bounds: BoundingBox, field_name: str) -> list[ValidationError]:
    """Validate a bounding box.

    Pure function.

    Args:
        bounds: Bounding box to validate
        field_name: Name of the field for error messages

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    errors.extend(validate_coordinates(
        bounds.min_latitude, bounds.min_longitude,
        f"{field_name}.min",
    ))
    errors.extend(validate_coordinates(
        bounds.max_latitude, bounds.max_longitude,
        f"{field_name}.max",
    ))

    if bounds.min_latitude > bounds.max_latitude:
        errors.append(ValidationError(
            field=field_name,
            message=f"min_latitude ({bounds.min_latitude}) > max_latitude ({bounds.max_latitude})",
        ))

    if bounds.min_longitude > bounds.max_longitude:
        errors.append(ValidationError(
            field=field_name,
            message=f"min_longitude ({bounds.min_longitude}) > max_longitude ({bounds.max_longitude})",
        ))

    return errors


def validate_config(config: Config) -> ValidationResult:
    """Validate configuration for errors and warnings.

    Pure function.

    Args:
        config: Configuration to validate

    Returns:
        ValidationResult with any errors/warnings found
    """
    errors: list[ValidationError] = []

    errors.extend(validate_bounds(config.admission_bounds, "admission_bounds"))

    for name in ("page_size", "request_timeout_seconds", "refresh_interval_seconds"):
        value = getattr(config, name)
        if value <= 0:
            errors.append(ValidationError(
                field=name,
                message=f"Must be positive, got {value}",
            ))

    if config.dedup.coordinate_scale <= 0 or config.dedup.time_bucket_ms <= 0:
        errors.append(ValidationError(
            field="dedup",
            message="coordinate_scale and time_bucket_ms must be positive",
        ))

    known = {s.value for s in Source}
    seen: set[str] = set()
    for i, provider in enumerate(config.providers):
        if provider.name not in known:
            errors.append(ValidationError(
                field=f"providers[{i}].name",
                message=f"Unknown provider '{provider.name}' (known: {', '.join(sorted(known))})",
            ))
        if provider.name in seen:
            errors.append(ValidationError(
                field=f"providers[{i}].name",
                message=f"Provider '{provider.name}' listed twice",
            ))
        seen.add(provider.name)

        if not provider.base_url.startswith(("http://", "https://")):
            errors.append(ValidationError(
                field=f"providers[{i}].base_url",
                message=f"Not an HTTP URL: {provider.base_url!r}",
            ))

    if not config.enabled_providers:
        errors.append(ValidationError(
            field="providers",
            message="No providers enabled",
            severity="warning",
        ))

    has_critical = any(e.severity == "error" for e in errors)

    return ValidationResult(
        valid=not has_critical,
        errors=errors,
    )
