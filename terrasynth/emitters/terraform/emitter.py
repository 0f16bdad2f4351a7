"""Terraform JSON emitter.

Walks a run (its own nodes plus every node reachable from its top-level
composites), resolves every local reference, and produces a
``main.tf.json`` document. Output is deterministic: keys are sorted and
the text always ends with a newline.
"""

import json
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from ...config.models import SynthConfig
from ...exceptions import UnresolvedReferenceError
from ...references import TokenScope, iter_tokens
from ...resources.node import ResourceReference
from .. import IaCEmitter, register_emitter
from .context import EmitterContext
from .serializer import to_document_attributes, to_document_value

if TYPE_CHECKING:
    from ...run import Run

logger = logging.getLogger(__name__)


class TerraformEmitter(IaCEmitter):
    """Emitter for Terraform JSON documents."""

    def __init__(self, config: Optional[SynthConfig] = None) -> None:
        super().__init__(config)
        self._last_context: Optional[EmitterContext] = None

    def collect_nodes(self, run: "Run") -> List[ResourceReference]:
        """Run nodes plus composite members, deduplicated by address, in build order."""
        seen = set()
        nodes: List[ResourceReference] = []
        candidates = run.data_sources() + run.resources()
        for composite in run.composites:
            candidates.extend(composite.all_resources())
        for node in candidates:
            if node.address not in seen:
                seen.add(node.address)
                nodes.append(node)
        return nodes

    def emit(self, run: "Run") -> Dict[str, Any]:
        """Build the Terraform JSON document for a run.

        Args:
            run: Run holding every declared node

        Returns:
            Document as a plain dictionary

        Raises:
            UnresolvedReferenceError: If a resource token targets an
                unregistered node or a var token an undeclared variable
        """
        context = EmitterContext()
        nodes = self.collect_nodes(run)

        # Register every identity first so forward references resolve
        for node in nodes:
            if node.node.is_data:
                context.track_data_source(node.kind, node.name)
            else:
                context.track_resource(node.kind, node.name)
        for variable in run.variables:
            context.declare_variable(variable)

        context.terraform_config["terraform"] = self._terraform_block()

        providers = self._provider_blocks(run)
        if providers:
            context.terraform_config["provider"] = providers

        if run.variables:
            context.terraform_config["variable"] = {
                name: to_document_value(block) for name, block in run.variables.items()
            }

        for node in nodes:
            self._check_references(node.attributes, context, node.kind, node.name)
            config = to_document_attributes(node.attributes)
            if node.node.is_data:
                context.add_data_source(node.kind, node.name, config)
            else:
                context.add_resource(node.kind, node.name, config)
        context.terraform_config.setdefault("resource", {})

        if run.outputs:
            outputs = {}
            for name, block in run.outputs.items():
                self._check_references(block, context, "output", name)
                outputs[name] = to_document_value(block)
            context.terraform_config["output"] = outputs

        self._last_context = context
        stats = context.get_statistics()
        logger.info(
            f"Emitted {stats['resources']} resources and {stats['data_sources']} data sources "
            f"({stats['tokens']} references)"
        )
        return context.terraform_config

    def render(self, run: "Run") -> str:
        """Serialize the document with sorted keys and a trailing newline."""
        indent = self.config.indent if self.config.indent > 0 else None
        return json.dumps(self.emit(run), indent=indent, sort_keys=True) + "\n"

    def get_statistics(self) -> Dict[str, int]:
        """Statistics of the most recent emission."""
        if self._last_context is None:
            return {}
        return self._last_context.get_statistics()

    def _check_references(self, value: Any, context: EmitterContext, kind: str, name: str) -> None:
        for field_path, token in iter_tokens(value):
            context.token_count += 1
            if token.scope is TokenScope.DATA:
                continue
            if token.scope is TokenScope.VARIABLE:
                if not context.variable_exists(token.name):
                    raise UnresolvedReferenceError(
                        f"var.{token.name}", kind=kind, name=name, field_path=field_path
                    )
                continue
            if not context.resource_exists(token.kind, token.name):
                raise UnresolvedReferenceError(
                    f"{token.kind}.{token.name}", kind=kind, name=name, field_path=field_path
                )

    def _terraform_block(self) -> Dict[str, Any]:
        settings = self.config.terraform
        required_providers = {}
        for provider, requirement in settings.required_providers.items():
            entry = {"source": requirement.source}
            if requirement.version:
                entry["version"] = requirement.version
            required_providers[provider] = entry
        block: Dict[str, Any] = {"required_version": settings.required_version}
        if required_providers:
            block["required_providers"] = required_providers
        return block

    def _provider_blocks(self, run: "Run") -> Dict[str, Any]:
        """Config providers first; run declarations replace unaliased config entries."""
        blocks: Dict[str, List[Dict[str, Any]]] = {
            name: [dict(config)] for name, config in self.config.providers.items()
        }
        declared = set()
        for name, block in run.providers:
            if name not in declared and "alias" not in block:
                blocks[name] = [b for b in blocks.get(name, []) if "alias" in b]
            declared.add(name)
            blocks.setdefault(name, []).append(dict(block))
        return {
            name: [to_document_value(b) for b in entries] if len(entries) > 1 else to_document_value(entries[0])
            for name, entries in blocks.items()
            if entries
        }


register_emitter("terraform", TerraformEmitter)
