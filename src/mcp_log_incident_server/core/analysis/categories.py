"""Rule-based error categorization.

Categories form a decision list: they are evaluated in ascending priority order
and the first category with a matching pattern wins. A message mentioning both
"database" and "unauthorized" is therefore a Database error, because Database
(priority 1) is checked before Authentication (priority 2). Categories later in
the list only see messages that no earlier category claimed.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

from ..models import ErrorCategory

ERROR_CATEGORIES: tuple[ErrorCategory, ...] = (
    ErrorCategory(
        name="Database",
        priority=1,
        description="Database connection, query, or transaction failures",
        patterns=(
            "database", "db", "sql", "connection", "timeout", "deadlock", "constraint",
            "foreign key", "transaction", "rollback", "commit", "postgres", "mysql",
            "mongodb", "redis",
        ),
    ),
    ErrorCategory(
        name="Authentication",
        priority=2,
        description="User authentication and authorization failures",
        patterns=(
            "auth", "login", "token", "jwt", "oauth", "permission", "unauthorized",
            "forbidden", "credential", "password", "session", "expired",
        ),
    ),
    ErrorCategory(
        name="Network",
        priority=3,
        description="Network connectivity and communication issues",
        patterns=(
            "network", "connection", "timeout", "refused", "unreachable", "dns", "socket",
            "http", "tcp", "udp", "proxy", "gateway",
        ),
    ),
    ErrorCategory(
        name="External API",
        priority=4,
        description="Third-party service and API failures",
        patterns=(
            "api", "external", "service", "endpoint", "http", "rest", "graphql", "webhook",
            "integration", "third-party", "upstream",
        ),
    ),
    ErrorCategory(
        name="File System",
        priority=5,
        description="File and storage system errors",
        patterns=(
            "file", "disk", "storage", "io", "read", "write", "permission", "not found",
            "access denied", "quota", "space", "mount",
        ),
    ),
    ErrorCategory(
        name="Memory",
        priority=6,
        description="Memory allocation and garbage collection issues",
        patterns=(
            "memory", "heap", "out of memory", "oom", "gc", "garbage", "allocation", "leak",
            "buffer",
        ),
    ),
    ErrorCategory(
        name="Configuration",
        priority=7,
        description="Application configuration and environment issues",
        patterns=(
            "config", "environment", "env", "setting", "parameter", "missing", "invalid",
            "default", "bootstrap",
        ),
    ),
    ErrorCategory(
        name="Validation",
        priority=8,
        description="Input validation and data format errors",
        patterns=(
            "validation", "invalid", "format", "parse", "json", "xml", "schema", "required",
            "type", "cast",
        ),
    ),
    ErrorCategory(
        name="Business Logic",
        priority=9,
        description="Application-specific business rule violations",
        patterns=(
            "business", "rule", "constraint", "limit", "quota", "rate", "policy", "workflow",
            "state",
        ),
    ),
    ErrorCategory(
        name="Concurrency",
        priority=10,
        description="Threading, locking, and concurrent access issues",
        patterns=(
            "concurrent", "thread", "lock", "race", "deadlock", "mutex", "semaphore", "atomic",
            "synchronization",
        ),
    ),
    ErrorCategory(
        name="Security",
        priority=11,
        description="Security violations and suspicious activities",
        patterns=(
            "security", "attack", "injection", "xss", "csrf", "malicious", "breach", "exploit",
            "vulnerability",
        ),
    ),
    ErrorCategory(
        name="Performance",
        priority=12,
        description="Performance degradation and resource exhaustion",
        patterns=(
            "performance", "slow", "latency", "timeout", "bottleneck", "cpu", "load",
            "throughput", "response time",
        ),
    ),
    ErrorCategory(
        name="Dependency",
        priority=13,
        description="External dependency and service failures",
        patterns=(
            "dependency", "service", "microservice", "circuit", "breaker", "fallback", "retry",
            "cascade",
        ),
    ),
    ErrorCategory(
        name="Serialization",
        priority=14,
        description="Data serialization and deserialization errors",
        patterns=(
            "serialize", "deserialize", "marshal", "unmarshal", "encode", "decode", "binary",
            "protobuf", "avro",
        ),
    ),
    ErrorCategory(
        name="Cache",
        priority=15,
        description="Caching system failures and inconsistencies",
        patterns=(
            "cache", "redis", "memcached", "ttl", "expire", "invalidate", "miss", "hit",
            "eviction",
        ),
    ),
    ErrorCategory(
        name="Queue",
        priority=16,
        description="Message queue and event processing failures",
        patterns=(
            "queue", "message", "event", "producer", "consumer", "kafka", "rabbitmq", "sqs",
            "pubsub",
        ),
    ),
    ErrorCategory(
        name="Monitoring",
        priority=17,
        description="Monitoring, logging, and observability issues",
        patterns=(
            "monitor", "metric", "log", "trace", "alert", "dashboard", "telemetry",
            "observability",
        ),
    ),
    ErrorCategory(
        name="Deployment",
        priority=18,
        description="Deployment and infrastructure issues",
        patterns=(
            "deploy", "container", "docker", "kubernetes", "pod", "node", "infrastructure",
            "orchestration",
        ),
    ),
    ErrorCategory(
        name="Code Error",
        priority=19,
        description="Application code errors and exceptions",
        patterns=(
            "exception", "error", "bug", "null", "undefined", "reference", "index", "range",
            "stack", "trace",
        ),
    ),
    ErrorCategory(
        name="Unknown",
        priority=20,
        description="Unclassified or unknown error types",
    ),
)


class CategoryDecisionList:
    """Ordered rule evaluator: first matching category wins.

    The rules must be sorted by strictly ascending priority and end with a
    pattern-less fallback category, which is returned when nothing matches.
    """

    __slots__ = ("_rules", "_fallback", "_by_name")

    def __init__(self, categories: Sequence[ErrorCategory]) -> None:
        if not categories:
            raise ValueError("At least one category is required")
        *rules, fallback = categories
        if fallback.patterns:
            raise ValueError("The last category must be a fallback without patterns")
        priorities = [c.priority for c in categories]
        if any(a >= b for a, b in zip(priorities, priorities[1:])):
            raise ValueError("Category priorities must be strictly ascending")
        names = [c.name for c in categories]
        if len(set(names)) != len(names):
            raise ValueError("Category names must be unique")

        self._rules: tuple[ErrorCategory, ...] = tuple(rules)
        self._fallback = fallback
        self._by_name = {c.name: c for c in categories}

    @property
    def categories(self) -> tuple[ErrorCategory, ...]:
        return (*self._rules, self._fallback)

    @property
    def fallback(self) -> ErrorCategory:
        return self._fallback

    def get(self, name: str) -> ErrorCategory | None:
        return self._by_name.get(name)

    def evaluate(self, text: str) -> ErrorCategory:
        """Return the first category matching the lowercased text."""
        for category in self._rules:
            if category.matches(text):
                return category
        return self._fallback


DEFAULT_DECISION_LIST = CategoryDecisionList(ERROR_CATEGORIES)


def categorization_text(message: str, data: Any) -> str:
    """Build the lowercase text blob rules are matched against."""
    payload = json.dumps(data or {}, separators=(",", ":"), ensure_ascii=False, default=str)
    return f"{message} {payload}".lower()


def categorize_error(
    message: str,
    data: Any,
    *,
    decision_list: CategoryDecisionList = DEFAULT_DECISION_LIST,
) -> ErrorCategory:
    """Assign a single error entry to exactly one category."""
    return decision_list.evaluate(categorization_text(message, data))


def get_category(name: str) -> ErrorCategory | None:
    """Look up a default taxonomy category by name."""
    return DEFAULT_DECISION_LIST.get(name)
