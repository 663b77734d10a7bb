"""Circuit configuration."""

from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

from primitives.keccak import HashVariant


@dataclass(frozen=True)
class KeccakConfig:
    """Options of a Keccak circuit build.

    Attributes:
        variant: Padding domain (Keccak-256 or SHA3-256)
        use_instance: Expose input words and digest halves as public inputs
        verify_output: Cross-check the witness digest against the reference hash
        check_constraints: Verify the assigned witness through the backend
        workers: Worker processes for witness generation (1 = sequential)
    """
    variant: HashVariant = HashVariant.KECCAK_256
    use_instance: bool = True
    verify_output: bool = True
    check_constraints: bool = True
    workers: int = 1

    def __post_init__(self):
        if not isinstance(self.variant, HashVariant):
            raise ValueError(f"unknown hash variant {self.variant!r}")
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")

    @classmethod
    def from_dict(cls, options: Optional[Dict[str, Any]] = None) -> "KeccakConfig":
        """Build a config from plain options; variant may be given by name.

        Raises:
            ValueError: On unknown keys or invalid values
        """
        options = dict(options or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(options) - known)
        if unknown:
            raise ValueError(f"unknown config keys: {', '.join(unknown)}")
        variant = options.get("variant")
        if isinstance(variant, str):
            try:
                options["variant"] = HashVariant[variant.upper().replace("-", "_")]
            except KeyError:
                raise ValueError(f"unknown hash variant {variant!r}") from None
        return cls(**options)
