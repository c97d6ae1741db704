# piinguin/core/loader.py

"""Rule catalog loader: PII kinds, built-in rules and event field kinds."""

import yaml
import logging
from pathlib import Path
from typing import Dict, List, Any, Optional, Sequence, Tuple

from piinguin.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

WILDCARD = "*"


class RuleCatalog:
    """Singleton loader for the rule catalog.

    Loads ``rules.yaml`` once and keeps the PII-kind list and the built-in
    rule references as immutable tuples for the lifetime of the process.
    """

    _instance: Optional["RuleCatalog"] = None

    def __init__(self, config_path: Optional[Path] = None) -> None:
        self._config_path = config_path or Path(__file__).parent / "rules.yaml"
        self._config: Dict[str, Any] = {}
        self._pii_kinds: Tuple[str, ...] = ()
        self._builtin_names: Tuple[str, ...] = ()
        self._field_kinds: List[Tuple[Tuple[str, ...], str]] = []
        self._load_config()

    def _load_config(self) -> None:
        """Loads and validates the catalog file.

        Raises:
            ConfigurationError: If file is missing, invalid, or empty.
        """
        config_path = self._config_path
        try:
            if not config_path.exists():
                error_msg = f"Rule catalog not found: {config_path}"
                logger.error(error_msg)
                raise ConfigurationError(error_msg)

            with open(config_path, "r", encoding="utf-8") as f:
                self._config = yaml.safe_load(f)

            if not self._config:
                raise ConfigurationError("Rule catalog is empty or invalid")

            self._validate_config()

            self._pii_kinds = tuple(self._config["pii_kinds"])
            self._builtin_names = tuple(self._config["builtin_rules"])
            self._field_kinds = [
                (tuple(field_path.split(".")), kind)
                for field_path, kind in self._config["field_kinds"].items()
            ]

            logger.info(
                "Rule catalog loaded successfully",
                extra={
                    "config_path": str(config_path),
                    "pii_kind_count": len(self._pii_kinds),
                    "builtin_rule_count": len(self._builtin_names),
                },
            )

        except yaml.YAMLError as e:
            logger.error(f"YAML parsing error: {e}", exc_info=True)
            raise ConfigurationError(f"Failed to parse {config_path.name}: {e}") from e
        except Exception as e:
            if isinstance(e, ConfigurationError):
                raise
            logger.error(f"Rule catalog loading failed: {e}", exc_info=True)
            raise ConfigurationError(f"Failed to load rule catalog: {e}") from e

    def _validate_config(self) -> None:
        """Validates required sections exist and reference known kinds.

        Raises:
            ConfigurationError: If sections are missing or inconsistent.
        """
        required_sections = ["pii_kinds", "patterns", "builtin_rules", "field_kinds"]
        missing = [s for s in required_sections if s not in self._config]

        if missing:
            error_msg = f"Missing required catalog sections: {missing}"
            logger.error(error_msg)
            raise ConfigurationError(error_msg)

        kinds = set(self._config["pii_kinds"])
        unknown = sorted(
            set(self._config["field_kinds"].values()) - kinds
        )
        if unknown:
            raise ConfigurationError(f"field_kinds uses unknown PII kinds: {unknown}")

    @classmethod
    def get_instance(cls) -> "RuleCatalog":
        """Returns the singleton instance of RuleCatalog."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @property
    def pii_kinds(self) -> Tuple[str, ...]:
        return self._pii_kinds

    @property
    def builtin_rule_names(self) -> Tuple[str, ...]:
        return self._builtin_names

    def get_builtin_rule(self, name: str) -> Optional[Dict[str, Any]]:
        """Returns the raw definition of a built-in rule reference."""
        return self._config["builtin_rules"].get(name)

    def get_pattern(self, rule_type: str) -> Optional[Dict[str, Any]]:
        """Returns the pattern definition backing a named rule type.

        Args:
            rule_type: Named pattern type (e.g., 'ip', 'creditcard')

        Returns:
            Dictionary with 'name', 'regex', 'score' keys, None if unknown
        """
        return self._config["patterns"].get(rule_type)

    def kind_for(self, segments: Sequence[str]) -> Optional[str]:
        """Returns the PII kind of the node at ``segments``.

        The longest prefix of ``segments`` that matches a ``field_kinds``
        entry decides, so nested values inherit the kind of their container.
        """
        for length in range(len(segments), 0, -1):
            prefix = segments[:length]
            for field_path, kind in self._field_kinds:
                if len(field_path) == length and all(
                    f == WILDCARD or f == s for f, s in zip(field_path, prefix)
                ):
                    return kind
        return None
