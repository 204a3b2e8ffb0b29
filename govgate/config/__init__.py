"""Environment-driven configuration."""

from govgate.config.gate_config import GovernanceGateConfig

__all__: list[str] = ["GovernanceGateConfig"]
