"""
Exceptions raised while defining schemas, validating attributes, building
runs and composites, emitting documents and loading configuration.

Every error carries an error code and a context dict (kind, name, field
path and so on), so a failed run ends with one error that names the
offending node and the rule it broke.
"""

from typing import Any, Dict, Optional, Sequence


class TerrasynthError(Exception):
    """Base class for terrasynth errors.

    Attributes:
        message: Human-readable description
        error_code: Stable code for programmatic handling
        context: Structured details about where the error happened
        cause: Underlying exception, if any
        recovery_suggestion: Hint shown to the user
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        recovery_suggestion: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.cause = cause
        self.recovery_suggestion = recovery_suggestion

    def __str__(self) -> str:
        parts = [f"[{self.error_code}] {self.message}" if self.error_code else self.message]
        if self.context:
            parts.append("(context: " + ", ".join(f"{k}={v}" for k, v in self.context.items()) + ")")
        if self.cause:
            parts.append(f"(caused by: {self.cause})")
        if self.recovery_suggestion:
            parts.append(f"(suggestion: {self.recovery_suggestion})")
        return " ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Structured form used when logging the error."""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "error_code": self.error_code,
            "context": dict(self.context),
            "cause": None if self.cause is None else str(self.cause),
            "recovery_suggestion": self.recovery_suggestion,
        }


# Schema definition exceptions
class SchemaDefinitionError(TerrasynthError):
    """Raised when a schema spec tree is structurally invalid."""

    def __init__(self, message: str, path: Optional[str] = None, **kwargs: Any) -> None:
        context = kwargs.get("context", {})
        if path:
            context["path"] = path
        kwargs["context"] = context
        kwargs.setdefault("error_code", "SCHEMA_DEFINITION_INVALID")
        super().__init__(message, **kwargs)
        self.path = path


# Validation exceptions
class ValidationError(TerrasynthError):
    """Base class for attribute validation errors.

    The resource identity is usually unknown at the point a value fails;
    the node builder stamps it on with ``with_identity`` before the error
    propagates out of ``Run.build``.
    """

    def __init__(
        self,
        message: str,
        field_path: Optional[str] = None,
        kind: Optional[str] = None,
        name: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.get("context", {})
        if kind:
            context["kind"] = kind
        if name:
            context["name"] = name
        if field_path:
            context["field_path"] = field_path
        kwargs["context"] = context
        super().__init__(message, **kwargs)
        self.field_path = field_path
        self.kind = kind
        self.name = name

    def with_identity(self, kind: str, name: str) -> "ValidationError":
        """Attach the (kind, name) of the resource being validated."""
        self.kind = kind
        self.name = name
        stamped = {"kind": kind, "name": name}
        stamped.update({k: v for k, v in self.context.items() if k not in stamped})
        self.context = stamped
        return self


class MissingFieldError(ValidationError):
    """Raised when a required field is absent from the raw input."""

    def __init__(self, field_path: str, **kwargs: Any) -> None:
        kwargs.setdefault("error_code", "MISSING_FIELD")
        kwargs.setdefault(
            "recovery_suggestion", f"Provide a value for '{field_path}'"
        )
        super().__init__(
            f"Required field '{field_path}' is missing", field_path=field_path, **kwargs
        )


class ConstraintViolationError(ValidationError):
    """Raised when a field value fails coercion or one of its constraints."""

    def __init__(
        self,
        field_path: str,
        value: Any,
        rule: str,
        detail: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.get("context", {})
        context["rule"] = rule
        kwargs["context"] = context
        kwargs.setdefault("error_code", "CONSTRAINT_VIOLATION")
        message = f"Field '{field_path}' violates '{rule}' with value {value!r}"
        if detail:
            message += f": {detail}"
        super().__init__(message, field_path=field_path, **kwargs)
        self.value = value
        self.rule = rule


class InvariantViolationError(ValidationError):
    """Raised when a cross-field invariant fails after all fields passed."""

    def __init__(
        self,
        rule: str,
        fields: Sequence[str],
        detail: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        fields = tuple(fields)
        context = kwargs.get("context", {})
        context["rule"] = rule
        context["fields"] = list(fields)
        kwargs["context"] = context
        kwargs.setdefault("error_code", "INVARIANT_VIOLATION")
        message = f"Invariant '{rule}' violated for fields {', '.join(fields)}"
        if detail:
            message += f": {detail}"
        super().__init__(
            message,
            field_path=fields[0] if len(fields) == 1 else None,
            **kwargs,
        )
        self.rule = rule
        self.fields = fields
        self.detail = detail


# Node and run exceptions
class UnknownKindError(TerrasynthError):
    """Raised when building a node of a kind that was never registered."""

    def __init__(self, kind: str, **kwargs: Any) -> None:
        context = kwargs.get("context", {})
        context["kind"] = kind
        kwargs["context"] = context
        kwargs.setdefault("error_code", "UNKNOWN_KIND")
        kwargs.setdefault(
            "recovery_suggestion", "Register the kind with register_kind() first"
        )
        super().__init__(f"No schema registered for kind '{kind}'", **kwargs)
        self.kind = kind


class DuplicateIdentityError(TerrasynthError):
    """Raised when two nodes are registered under the same (kind, name)."""

    def __init__(self, kind: str, name: str, scope: str = "resource", **kwargs: Any) -> None:
        context = kwargs.get("context", {})
        context["kind"] = kind
        context["name"] = name
        if scope != "resource":
            context["scope"] = scope
        kwargs["context"] = context
        kwargs.setdefault("error_code", "DUPLICATE_IDENTITY")
        kwargs.setdefault(
            "recovery_suggestion", "Give each node a name unique within its kind"
        )
        super().__init__(f"{scope} '{kind}.{name}' is already registered", **kwargs)
        self.kind = kind
        self.name = name


class UnresolvedReferenceError(TerrasynthError):
    """Raised at emission when a local token targets an unregistered node."""

    def __init__(
        self,
        target: str,
        kind: Optional[str] = None,
        name: Optional[str] = None,
        field_path: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.get("context", {})
        if kind:
            context["kind"] = kind
        if name:
            context["name"] = name
        if field_path:
            context["field_path"] = field_path
        context["target"] = target
        kwargs["context"] = context
        kwargs.setdefault("error_code", "UNRESOLVED_REFERENCE")
        kwargs.setdefault(
            "recovery_suggestion",
            "Build the referenced node in this run or use a data reference",
        )
        super().__init__(f"Reference to '{target}' was never registered", **kwargs)
        self.target = target
        self.kind = kind
        self.name = name
        self.field_path = field_path


# Composite exceptions
class CompositeError(TerrasynthError):
    """Base class for composite (architecture) errors."""

    pass


class ExtensionPointAlreadyOverriddenError(CompositeError):
    """Raised when an extension point is overridden a second time."""

    def __init__(self, composite: str, extension_point: str, **kwargs: Any) -> None:
        context = kwargs.get("context", {})
        context["composite"] = composite
        context["extension_point"] = extension_point
        kwargs["context"] = context
        kwargs.setdefault("error_code", "EXTENSION_POINT_ALREADY_OVERRIDDEN")
        super().__init__(
            f"Extension point '{extension_point}' of '{composite}' was already overridden",
            **kwargs,
        )
        self.extension_point = extension_point


class UnknownExtensionPointError(CompositeError):
    """Raised when overriding an extension point the composite does not declare."""

    def __init__(
        self,
        composite: str,
        extension_point: str,
        available: Optional[Sequence[str]] = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.get("context", {})
        context["composite"] = composite
        context["extension_point"] = extension_point
        if available is not None:
            context["available"] = list(available)
        kwargs["context"] = context
        kwargs.setdefault("error_code", "UNKNOWN_EXTENSION_POINT")
        super().__init__(
            f"Composite '{composite}' has no extension point '{extension_point}'",
            **kwargs,
        )
        self.extension_point = extension_point


class CompositeFinalizedError(CompositeError):
    """Raised when overriding a composite that has already been finalized."""

    def __init__(self, composite: str, **kwargs: Any) -> None:
        context = kwargs.get("context", {})
        context["composite"] = composite
        kwargs["context"] = context
        kwargs.setdefault("error_code", "COMPOSITE_FINALIZED")
        kwargs.setdefault(
            "recovery_suggestion", "Use extend() to add members after finalization"
        )
        super().__init__(f"Composite '{composite}' is already finalized", **kwargs)


# Configuration exceptions
class ConfigError(TerrasynthError):
    """Configuration loading or validation error."""

    def __init__(self, message: str, source: Optional[str] = None, **kwargs: Any) -> None:
        context = kwargs.get("context", {})
        if source:
            context["source"] = source
        kwargs["context"] = context
        kwargs.setdefault("error_code", "INVALID_CONFIG")
        kwargs.setdefault(
            "recovery_suggestion", "Check configuration file and environment variables"
        )
        super().__init__(message, **kwargs)
