from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from ..core.enums import VerificationMethod
from ..core.exceptions import ValidationError
from .strategies.base import VerificationStrategy
from .strategies.biometric_strategy import BiometricStrategy
from .strategies.gps_strategy import GpsStrategy
from .strategies.manual_strategy import ManualStrategy


def _default_strategies() -> Dict[VerificationMethod, VerificationStrategy]:
    return {
        VerificationMethod.GPS: GpsStrategy(),
        VerificationMethod.BIOMETRIC: BiometricStrategy(),
        VerificationMethod.MANUAL: ManualStrategy(),
    }


@dataclass
class VerificationStrategyFactory:
    """Factory Pattern: choose the strategy for a verification method."""

    strategies: Dict[VerificationMethod, VerificationStrategy] = field(default_factory=_default_strategies)

    def for_method(self, method: VerificationMethod) -> VerificationStrategy:
        strategy = self.strategies.get(method)
        if strategy is None:
            raise ValidationError(f"Unsupported verification method: {method}")
        return strategy
