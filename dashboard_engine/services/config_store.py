"""
Config Store - Sales Dashboard Engine
dashboard_engine/services/config_store.py

Holds the active AppConfig as an immutable, versioned snapshot.

Readers take a snapshot with get() and keep using it for the whole
request. Writers build and validate a complete new AppConfig, then publish
it by replacing a single reference, so a reader never sees a half-applied
change. A rejected write raises ConfigurationError and leaves the current
snapshot untouched.
"""
import json
import re
import threading
import structlog
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import ValidationError

from dashboard_engine.config import QUOTA_FIELD_DEFAULTS, settings
from dashboard_engine.core.exceptions import ConfigurationError
from dashboard_engine.models.config import (
    AppConfig,
    FieldMapping,
    LastModified,
    PriorityConfig,
    RiskRule,
    ScopeDefaults,
)
from dashboard_engine.models.defaults import build_default_config
from dashboard_engine.models.enumerations import AppRole

logger = structlog.get_logger(__name__)

REQUIRED_IMPORT_SECTIONS = ("riskRules", "priorityScoring", "fieldMappings")

# Profile-name patterns checked when no admin mapping matches, in order
_LEADERSHIP_PATTERNS = ("sales manager", "vp sales", "cro", "sales director", "system administrator")
_EXECUTIVE_PATTERNS = ("svp", "senior vice president", "chief", "president", "executive", "director")
_PROFILE_PATTERNS = (
    ("sales user", AppRole.AE),
    ("client sales", AppRole.AM),
    ("customer success", AppRole.CSM),
    ("account executive", AppRole.AE),
    ("account manager", AppRole.AM),
)
_ABBREVIATIONS = {"ae": AppRole.AE, "am": AppRole.AM}


def _dashboard_role(role: AppRole) -> AppRole:
    """Admins see the dashboard as sales leaders."""
    return AppRole.SALES_LEADER if role in (AppRole.ADMIN, AppRole.SALES_LEADER) else role


class ConfigStore:
    """Versioned, copy-on-write AppConfig holder."""

    def __init__(self, initial: Optional[AppConfig] = None, tolerance: Optional[float] = None):
        self.tolerance = settings.WEIGHT_TOLERANCE if tolerance is None else tolerance
        config = initial or build_default_config()
        config.priority_scoring.validate_for_save(self.tolerance)
        self._current = config
        self._write_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self) -> AppConfig:
        """Current snapshot; never mutated after publication."""
        return self._current

    @property
    def version(self) -> int:
        return self._current.version

    def export_json(self, indent: int = 2) -> str:
        return json.dumps(self._current.to_json_dict(), indent=indent)

    def get_quota_field_name(self, quota_type: str = "annual") -> str:
        """CRM user field holding the quota for annual / quarterly / monthly."""
        quota_type = quota_type.lower()
        if quota_type not in QUOTA_FIELD_DEFAULTS:
            raise ValueError(f"Unknown quota type: {quota_type}")
        mapped = self._current.field_for(f"{quota_type.capitalize()} Quota", category="quota")
        return mapped or QUOTA_FIELD_DEFAULTS[quota_type]

    def resolve_role(self, profile_name: Optional[str], user_name: Optional[str] = None,
                     user_email: Optional[str] = None) -> AppRole:
        """
        Dashboard role for a CRM user.

        Order: user-name/e-mail override, admin profile mapping (substring
        match), built-in profile patterns, unknown.
        """
        config = self._current
        identities = {value.strip().lower() for value in (user_name, user_email) if value}
        for override in config.user_role_overrides:
            if override.user_name.strip().lower() in identities:
                return _dashboard_role(override.app_role)

        profile = (profile_name or "").lower()
        if not profile:
            return AppRole.UNKNOWN
        for entry in config.role_mapping:
            if entry.salesforce_profile.lower() in profile:
                return _dashboard_role(entry.app_role)

        if any(pattern in profile for pattern in _LEADERSHIP_PATTERNS):
            return AppRole.SALES_LEADER
        if any(pattern in profile for pattern in _EXECUTIVE_PATTERNS):
            return AppRole.EXECUTIVE
        for pattern, role in _PROFILE_PATTERNS:
            if pattern in profile:
                return role
        for token in re.findall(r"[a-z]+", profile):
            if token in _ABBREVIATIONS:
                return _ABBREVIATIONS[token]
        return AppRole.UNKNOWN

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def update(self, changes: Mapping[str, Any], modified_by: str) -> AppConfig:
        """
        Replace whole top-level sections (camelCase or snake_case keys).

        Raises:
            ConfigurationError: if the resulting config is invalid.
        """
        return self._publish(changes, modified_by)

    def update_risk_rules(self, rules: Iterable[Union[RiskRule, Mapping]], modified_by: str) -> AppConfig:
        return self._publish({"riskRules": [_plain(rule) for rule in rules]}, modified_by)

    def update_priority_scoring(self, priority: Union[PriorityConfig, Mapping], modified_by: str) -> AppConfig:
        return self._publish({"priorityScoring": _plain(priority)}, modified_by)

    def update_field_mappings(self, mappings: Iterable[Union[FieldMapping, Mapping]], modified_by: str) -> AppConfig:
        return self._publish({"fieldMappings": [_plain(mapping) for mapping in mappings]}, modified_by)

    def update_opportunity_stages(self, stages: Iterable[str], modified_by: str) -> AppConfig:
        return self._publish({"opportunityStages": list(stages)}, modified_by)

    def update_scope_defaults(self, defaults: Union[ScopeDefaults, Mapping], modified_by: str) -> AppConfig:
        return self._publish({"scopeDefaults": _plain(defaults)}, modified_by)

    def reset_to_defaults(self, modified_by: Optional[str] = None) -> AppConfig:
        """Restore factory defaults; the version keeps increasing."""
        with self._write_lock:
            fresh = build_default_config()
            config = fresh.model_copy(update={
                "version": self._current.version + 1,
                "last_modified": None if modified_by is None else _stamp(modified_by),
            })
            self._current = config
        logger.info("config_updated", modified_by=modified_by, sections=["all"], version=config.version, reset=True)
        return config

    def import_json(self, payload: str, modified_by: str) -> AppConfig:
        """
        Replace the whole configuration from exported JSON.

        Raises:
            ConfigurationError: malformed JSON, missing riskRules /
                priorityScoring / fieldMappings, or an invalid config.
        """
        try:
            data = json.loads(payload)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid configuration JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigurationError("Invalid configuration JSON: expected an object")
        missing = [section for section in REQUIRED_IMPORT_SECTIONS if data.get(section) is None]
        if missing:
            raise ConfigurationError(
                f"Invalid configuration JSON: missing {', '.join(missing)}",
                field=missing[0],
            )
        data.pop("version", None)
        data.pop("lastModified", None)
        return self._publish(data, modified_by, replace=True)

    # ------------------------------------------------------------------

    def _publish(self, changes: Mapping[str, Any], modified_by: str, replace: bool = False) -> AppConfig:
        with self._write_lock:
            current = self._current
            base: Dict[str, Any] = {} if replace else current.to_json_dict()
            merged = {**base, **_camel_keys(changes)}
            merged["version"] = current.version + 1
            merged["lastModified"] = _stamp(modified_by).to_json_dict()
            try:
                candidate = AppConfig.model_validate(merged)
            except ValidationError as exc:
                raise ConfigurationError(_describe(exc)) from exc
            candidate.priority_scoring.validate_for_save(self.tolerance)
            self._current = candidate

        logger.info(
            "config_updated",
            modified_by=modified_by,
            sections=sorted(_camel_keys(changes)),
            version=candidate.version,
        )
        return candidate


# ---------------------------------------------------------------------------
# helpers
# ---------------------------------------------------------------------------

def _plain(value: Any) -> Any:
    if hasattr(value, "to_json_dict"):
        return value.to_json_dict()
    return dict(value) if isinstance(value, Mapping) else value


def _camel_keys(changes: Mapping[str, Any]) -> Dict[str, Any]:
    """Top-level section names in camelCase."""
    converted = {}
    for key, value in changes.items():
        head, *rest = key.split("_")
        converted[head + "".join(part.capitalize() for part in rest)] = _plain(value)
    return converted


def _stamp(modified_by: str) -> LastModified:
    return LastModified(by=modified_by, date=datetime.now(timezone.utc))


def _describe(exc: ValidationError) -> str:
    problems: List[str] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        problems.append(f"{location}: {error['msg']}" if location else error["msg"])
    return "Invalid configuration: " + "; ".join(problems)
