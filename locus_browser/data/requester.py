from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from locus_browser.core.exceptions import ConfigurationError
from locus_browser.core.fields import FieldSpec, parse_field
from locus_browser.core.transforms import TransformRegistry, default_transform_registry
from .chain import Chain
from .data_sources import DataSources

logger = logging.getLogger(__name__)


@dataclass
class NamespaceRequest:
    """The slice of a field list that one source has to answer."""

    namespace: str
    fields: List[str] = field(default_factory=list)
    outnames: List[str] = field(default_factory=list)
    transforms: List[Optional[Callable[[Any], Any]]] = field(default_factory=list)


def split_requests(specs: Sequence[FieldSpec]) -> Dict[str, NamespaceRequest]:
    """
    Group field specs by namespace, keeping the order in which each
    namespace first appears.
    """
    requests: Dict[str, NamespaceRequest] = {}
    for spec in specs:
        request = requests.setdefault(spec.namespace, NamespaceRequest(spec.namespace))
        request.fields.append(spec.field)
        request.outnames.append(spec.raw)
        request.transforms.append(spec.apply if spec.has_transforms else None)
    return requests


class Requester:
    """
    Resolves a layer's field list against the plot's data sources.

    Namespaces are resolved strictly one after another: each source receives
    the chain produced by the previous one, so a source that joins onto
    earlier records (LD onto association) must come later. The order is the
    order of first appearance in the field list, except that a source may
    name prerequisites in ``params["depends_on"]``; those are moved ahead of it.
    """

    def __init__(self, sources: DataSources, transforms: Optional[TransformRegistry] = None):
        self.sources = sources
        self.transforms = transforms or default_transform_registry()

    def parse_fields(self, fields: Sequence[Union[str, FieldSpec]]) -> List[FieldSpec]:
        return [f if isinstance(f, FieldSpec) else parse_field(f, self.transforms) for f in fields]

    def order_namespaces(self, namespaces: List[str]) -> List[str]:
        ordered: List[str] = []
        visiting: List[str] = []

        def visit(ns: str) -> None:
            if ns in ordered:
                return
            if ns in visiting:
                cycle = " -> ".join(visiting[visiting.index(ns):] + [ns])
                raise ConfigurationError(f"Circular data source dependency: {cycle}")
            visiting.append(ns)
            params = getattr(self.sources.get(ns), "params", None) or {}
            for dep in params.get("depends_on", []):
                if dep in namespaces:
                    visit(dep)
            visiting.pop()
            ordered.append(ns)

        for ns in namespaces:
            visit(ns)
        return ordered

    async def get_data(self, state: Mapping[str, Any], fields: Sequence[Union[str, FieldSpec]]) -> Chain:
        """
        Resolve every namespace referenced by ``fields`` and return the final chain.

        Raises:
            ConfigurationError: a namespace has no source, or the field set is invalid for a source
            RequestError / ParseError: the first source failure, unchanged
        """
        requests = split_requests(self.parse_fields(fields))

        for ns in requests:
            if self.sources.get(ns) is None:
                raise ConfigurationError(f"Datasource for namespace {ns} not found")

        # every source validates its fields before any I/O starts
        steps = []
        for ns in self.order_namespaces(list(requests)):
            source = self.sources.get(ns)
            req = requests[ns]
            prepared = source.pre_get_data(state, list(req.fields), list(req.outnames), list(req.transforms))
            steps.append((ns, source, prepared))

        chain = Chain()
        for ns, source, (ns_fields, ns_outnames, ns_transforms) in steps:
            logger.debug("Resolving namespace", extra={"namespace": ns, "fields": ns_fields})
            chain = await source.resolve(state, ns_fields, ns_outnames, ns_transforms, chain)
        return chain
