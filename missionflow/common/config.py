"""Workflow configuration for missionflow.

Handles loading and validation of the YAML file that declares which
roles sign off on each mission type.

Example::

    default_chain: [department_head, finance, hr, director]
    mission_types:
      livraison: [department_head, director]
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from missionflow.core.approval.errors import UnknownRoleError
from missionflow.core.approval.states import DEFAULT_CHAIN, ApprovalRole, canonical_order


# Mission types known to the web client
MISSION_TYPES: List[str] = [
    "inspection",
    "formation",
    "reunion",
    "audit",
    "livraison",
]


@dataclass
class WorkflowConfig:
    """Approval chains per mission type."""

    default_chain: Tuple[ApprovalRole, ...] = DEFAULT_CHAIN
    mission_types: Dict[str, Tuple[ApprovalRole, ...]] = field(default_factory=dict)

    @property
    def known_types(self) -> List[str]:
        """Built-in mission types followed by the ones only this file declares."""
        return MISSION_TYPES + [t for t in self.mission_types if t not in MISSION_TYPES]

    def is_known_type(self, mission_type: str) -> bool:
        return mission_type.strip().lower() in self.known_types

    def chain_for(self, mission_type: Optional[str]) -> Tuple[ApprovalRole, ...]:
        """Get the approval chain for a mission type, falling back to the default."""
        if mission_type:
            chain = self.mission_types.get(mission_type.strip().lower())
            if chain:
                return chain
        return self.default_chain


def parse_chain(roles: Any, *, source: str = "default_chain") -> Tuple[ApprovalRole, ...]:
    """Parse a list of role labels into a canonically ordered chain.

    Args:
        roles: List of role values or labels
        source: Config key being parsed, used in error messages

    Returns:
        Tuple of roles in approval order

    Raises:
        ValueError: If the chain is empty, not a list, or names an unknown role
    """
    if not isinstance(roles, list) or not roles:
        raise ValueError(f"{source} must be a non-empty list of roles")
    try:
        return canonical_order(roles)
    except UnknownRoleError as e:
        raise ValueError(f"{source}: {e}") from e


def parse_workflow_config(config_dict: Dict[str, Any]) -> WorkflowConfig:
    """Parse the workflow configuration dictionary.

    Args:
        config_dict: Full configuration dictionary

    Returns:
        WorkflowConfig instance
    """
    default_chain = DEFAULT_CHAIN
    if "default_chain" in config_dict:
        default_chain = parse_chain(config_dict["default_chain"])

    mission_types = {}
    for mission_type, roles in (config_dict.get("mission_types") or {}).items():
        key = str(mission_type).strip().lower()
        mission_types[key] = parse_chain(roles, source=f"mission_types.{key}")

    return WorkflowConfig(default_chain=default_chain, mission_types=mission_types)


def _substitute_env(value: Any) -> Any:
    """Expand ``$VAR``/``${VAR}`` in every string of a parsed YAML tree."""
    if isinstance(value, str):
        return os.path.expandvars(value)
    if isinstance(value, list):
        return list(map(_substitute_env, value))
    if isinstance(value, dict):
        return {k: _substitute_env(v) for k, v in value.items()}
    return value


def load_config(config_path: str) -> Dict[str, Any]:
    """Read a workflow YAML file into a dictionary.

    An empty file reads as ``{}``. Environment variables in string values
    are expanded.

    Raises:
        FileNotFoundError: If the file is missing
        TypeError: If the document is not a mapping
        yaml.YAMLError: If the file is not valid YAML
    """
    path = Path(config_path)
    if not path.is_file():
        raise FileNotFoundError(f"Workflow file not found: {config_path}")

    document = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(document, dict):
        raise TypeError(f"Workflow file {config_path} must hold a mapping, not {type(document).__name__}")

    return _substitute_env(document)


def load_workflow_config(config_path: Optional[str] = None) -> WorkflowConfig:
    """Load and parse the workflow file, or the built-in chain when no path is given.

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If a chain is invalid
    """
    if not config_path:
        return WorkflowConfig()
    return parse_workflow_config(load_config(config_path))
