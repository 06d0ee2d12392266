"""
Capability Mint Authority - Mint Validator Core

This module provides the MintValidator that runs an ordered chain of
MintRules against a mint request. Rules run in a fixed order and the first
failing rule decides the error code, so an identical bad request always fails
the same way.

The validator only reads state. All mutation happens in the mint engine after
the whole chain has passed.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from registry.exceptions import IssuanceError
from registry.schema import Capability, CollectionConfiguration


@dataclass
class MintContext:
    """
    Context object passed between mint rules.

    Contains the caller, the stored configuration and everything the request
    supplied.
    """
    # Call
    tx: Any
    config: CollectionConfiguration
    collection_id: str
    receiver: str
    paid: bool = False

    # Presented capability
    mint_cap_id: Optional[str] = None
    mint_cap: Optional[Capability] = None

    # Signed mint
    salt: Optional[bytes] = None
    signature: Optional[bytes] = None

    # Paid mint
    payment_coin_id: Optional[str] = None
    payment_value: Optional[int] = None

    # Rule bookkeeping
    rule_results: Dict[str, bool] = field(default_factory=dict)

    @property
    def sender(self) -> str:
        return self.tx.sender

    def mark_rule_passed(self, rule_name: str):
        self.rule_results[rule_name] = True

    def mark_rule_failed(self, rule_name: str):
        self.rule_results[rule_name] = False

    def get_summary(self) -> Dict[str, Any]:
        return {
            "config_id": self.config.id,
            "collection_id": self.collection_id,
            "sender": self.sender,
            "paid": self.paid,
            "rules_passed": sum(1 for passed in self.rule_results.values() if passed),
            "rules_total": len(self.rule_results),
        }


class MintRule(ABC):
    """
    Abstract base class for mint rules.

    A rule either returns normally or raises the IssuanceError subclass that
    names the violated precondition.
    """

    def __init__(self, name: str, description: str, enabled: bool = True):
        self.name = name
        self.description = description
        self.enabled = enabled
        self.logger = logging.getLogger(f"validator.rules.{name}")

    @abstractmethod
    def validate(self, context: MintContext) -> None:
        """
        Check the request.

        Raises:
            IssuanceError: the precondition this rule guards does not hold
        """
        pass

    def is_applicable(self, context: MintContext) -> bool:
        return self.enabled


class MintValidator:
    """Ordered rule chain for mint requests."""

    def __init__(self, rules: Optional[List[MintRule]] = None):
        self.logger = logging.getLogger("validator.engine")
        self.rules: List[MintRule] = []
        self.rule_registry: Dict[str, MintRule] = {}

        self.validation_stats = {
            "total_validations": 0,
            "approved_validations": 0,
            "rejected_validations": 0,
        }
        self.rejections_by_code: Dict[str, int] = {}

        for rule in rules or []:
            self.add_rule(rule)

    def add_rule(self, rule: MintRule) -> None:
        if rule.name in self.rule_registry:
            raise ValueError(f"Rule {rule.name} already registered")
        self.rules.append(rule)
        self.rule_registry[rule.name] = rule

    def get_rule(self, name: str) -> Optional[MintRule]:
        return self.rule_registry.get(name)

    def validate(self, context: MintContext) -> MintContext:
        """Run every applicable rule in order; the first failure propagates."""
        self.validation_stats["total_validations"] += 1

        for rule in self.rules:
            if not rule.is_applicable(context):
                continue
            try:
                rule.validate(context)
            except IssuanceError as e:
                context.mark_rule_failed(rule.name)
                self.validation_stats["rejected_validations"] += 1
                self.rejections_by_code[e.code] = self.rejections_by_code.get(e.code, 0) + 1
                self.logger.info(f"Mint rejected by {rule.name}: {e}")
                raise
            context.mark_rule_passed(rule.name)

        self.validation_stats["approved_validations"] += 1
        return context

    def get_statistics(self) -> Dict[str, Any]:
        return {
            **self.validation_stats,
            "rejections_by_code": dict(self.rejections_by_code),
            "rules": [rule.name for rule in self.rules],
        }
