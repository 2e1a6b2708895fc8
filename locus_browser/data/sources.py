"""
Built-in data sources.

Each class answers one namespace of field requests for a genomic region. URL
construction follows the query syntax of the LocusZoom portal API (filter
expressions on chromosome and position); any server speaking that dialect
will do.
"""
from __future__ import annotations

import copy
import json
import logging
import re
from typing import Any, Dict, List, Mapping, Optional

import httpx

from locus_browser.core.exceptions import ConfigurationError, ParseError, RequestError
from .chain import Chain
from .source import BaseSource, RemoteSource
from .transport import fetch_text

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------
# Association
# ---------------------------------------------------------------------


class AssociationSource(RemoteSource):
    """Single-variant association results, one record per variant in the region."""

    SOURCE_NAME = "AssociationLZ"

    def pre_get_data(self, state, fields, outnames, transforms):
        id_field = self.params.get("id_field", "id")
        for name in (id_field, "position"):
            if name not in fields:
                fields.insert(0, name)
                outnames.insert(0, name)
                transforms.insert(0, None)
        return fields, outnames, transforms

    def get_url(self, state: Mapping[str, Any], chain: Chain, fields: List[str]) -> str:
        analysis = state.get("analysis") or chain.header.get("analysis") or self.params.get("analysis") or 3
        return (
            f"{self.url}results/?filter=analysis in {analysis}"
            f" and chromosome in  '{state.get('chr')}'"
            f" and position ge {state.get('start')}"
            f" and position le {state.get('end')}"
        )


# ---------------------------------------------------------------------
# Linkage disequilibrium
# ---------------------------------------------------------------------


def _unique_match(names: List[str], *patterns: str) -> Optional[str]:
    """First pattern that matches exactly one of ``names``."""
    for pattern in patterns:
        regex = re.compile(pattern, re.IGNORECASE)
        matches = [n for n in names if regex.search(n)]
        if len(matches) == 1:
            return matches[0]
    return None


class LDSource(RemoteSource):
    """
    LD (r squared) relative to a reference variant, merged onto the
    association records already in the chain.

    Requested fields are the reference selector (``"state"``, ``"best"`` or a
    literal variant id; "state" when omitted) and optionally ``"isrefvar"``,
    which tags the reference row with 1 and every other row with 0.
    """

    SOURCE_NAME = "LDLZ"

    def pre_get_data(self, state, fields, outnames, transforms):
        if len(fields) > 1 and (len(fields) != 2 or "isrefvar" not in fields):
            raise ConfigurationError(f"LD does not know how to get all fields: {', '.join(fields)}")
        return fields, outnames, transforms

    def find_merge_fields(self, chain: Chain) -> Dict[str, Any]:
        """Locate the id, position and p-value columns of the association records."""
        keys: Dict[str, Any] = {
            "id": self.params.get("id_field"),
            "position": self.params.get("position_field"),
            "pvalue": self.params.get("pvalue_field"),
            "names": [],
        }
        if chain.body:
            names = list(chain.body[0].keys())
            keys["id"] = keys["id"] or _unique_match(names, r"\bvariant\b") or _unique_match(names, r"\bid\b")
            keys["position"] = keys["position"] or _unique_match(names, r"\bposition\b", r"\bpos\b")
            keys["pvalue"] = (
                keys["pvalue"]
                or _unique_match(names, r"\blog_pvalue\b")
                or _unique_match(names, r"\bpvalue\|neglog10\b")
            )
            keys["names"] = names
        return keys

    @staticmethod
    def find_requested_fields(fields: List[str], outnames: Optional[List[str]] = None) -> Dict[str, Optional[str]]:
        found: Dict[str, Optional[str]] = {"ldin": None, "ldout": None, "isrefvarin": None, "isrefvarout": None}
        for i, name in enumerate(fields):
            out = outnames[i] if outnames else None
            if name == "isrefvar":
                found["isrefvarin"], found["isrefvarout"] = name, out
            else:
                found["ldin"], found["ldout"] = name, out
        return found

    def _reference_variant(self, state: Mapping[str, Any], chain: Chain, fields: List[str]) -> str:
        ref_var = self.find_requested_fields(fields)["ldin"]
        if ref_var is None or ref_var == "state":
            ref_var = state.get("ldrefvar") or chain.header.get("ldrefvar") or "best"
        if ref_var != "best":
            return ref_var

        if not chain.body:
            raise RequestError("No association data found to find best pvalue")
        keys = self.find_merge_fields(chain)
        if not keys["pvalue"] or not keys["id"]:
            raise RequestError(f"Unable to find columns for both pvalue and id for merge: {keys['names']}")

        # most significant row; the p-value column is on a -log10 scale
        best_idx, best_val = 0, chain.body[0].get(keys["pvalue"])
        for i, row in enumerate(chain.body[1:], start=1):
            value = row.get(keys["pvalue"])
            if value is not None and (best_val is None or value > best_val):
                best_idx, best_val = i, value
        return chain.body[best_idx][keys["id"]]

    def get_url(self, state: Mapping[str, Any], chain: Chain, fields: List[str]) -> str:
        ref_source = state.get("ldrefsource") or chain.header.get("ldrefsource") or 1
        ref_var = self._reference_variant(state, chain, fields)
        chain.header["ldrefvar"] = ref_var
        return (
            f"{self.url}results/?filter=reference eq {ref_source}"
            f" and chromosome2 eq '{state.get('chr')}'"
            f" and position2 ge {state.get('start')}"
            f" and position2 le {state.get('end')}"
            f" and variant1 eq '{ref_var}'"
            f"&fields=chr,pos,rsquare"
        )

    def parse(self, raw, chain, fields, outnames, transforms) -> Chain:
        payload = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
        ld = payload.get("data", payload) if isinstance(payload, dict) else None
        if not isinstance(ld, dict) or "position2" not in ld or "rsquare" not in ld:
            raise ParseError("LD response must provide position2 and rsquare columns")

        keys = self.find_merge_fields(chain)
        requested = self.find_requested_fields(fields, outnames)
        if not keys["position"]:
            raise ParseError(f"Unable to find position field for merge: {keys['names']}")

        if requested["ldout"]:
            self._left_join(chain.body, ld, keys["position"], requested["ldout"])
        if requested["isrefvarin"] and chain.header.get("ldrefvar"):
            self._tag_ref_variant(chain.body, chain.header["ldrefvar"], keys["id"], requested["isrefvarout"])
        return chain

    @staticmethod
    def _left_join(left: List[Dict[str, Any]], right: Dict[str, List[Any]], position_key: str, outname: str) -> None:
        """Sorted merge-join on position; rows without an LD match are left untouched."""
        positions, values = right["position2"], right["rsquare"]
        i = j = 0
        while i < len(left) and j < len(positions):
            pos = left[i].get(position_key)
            if pos == positions[j]:
                left[i][outname] = values[j]
                i += 1
                j += 1
            elif pos is None or pos < positions[j]:
                i += 1
            else:
                j += 1

    @staticmethod
    def _tag_ref_variant(rows: List[Dict[str, Any]], ref_var: str, id_key: Optional[str], outname: str) -> None:
        for row in rows:
            row[outname] = 1 if id_key and row.get(id_key) and row.get(id_key) == ref_var else 0


# ---------------------------------------------------------------------
# Genes and gene constraint
# ---------------------------------------------------------------------


class GeneSource(RemoteSource):
    """Gene models overlapping the region. Records are passed through whole."""

    SOURCE_NAME = "GeneLZ"

    def get_url(self, state: Mapping[str, Any], chain: Chain, fields: List[str]) -> str:
        source = state.get("source") or chain.header.get("source") or self.params.get("source") or 2
        return (
            f"{self.url}?filter=source in {source}"
            f" and chrom eq '{state.get('chr')}'"
            f" and start le {state.get('end')}"
            f" and end ge {state.get('start')}"
        )

    def parse(self, raw, chain, fields, outnames, transforms) -> Chain:
        payload = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
        genes = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(genes, list):
            raise ParseError("Gene response must hold a list under `data`")
        return Chain(header=chain.header, body=copy.deepcopy(genes))


CONSTRAINT_FIELDS = (
    "bp", "exp_lof", "exp_mis", "exp_syn", "lof_z", "mis_z", "mu_lof", "mu_mis",
    "mu_syn", "n_exons", "n_lof", "n_mis", "n_syn", "pLI", "syn_z",
)


def _strip_version(gene_id: str) -> str:
    return str(gene_id).split(".", 1)[0]


class GeneConstraintSource(RemoteSource):
    """
    Gene constraint metrics, POSTed for the gene ids already in the chain and
    merged onto each gene. Fields the gene records already have are never
    overwritten; genes missing from the response get None.
    """

    SOURCE_NAME = "GeneConstraintLZ"
    method = "POST"

    def get_url(self, state: Mapping[str, Any], chain: Chain, fields: List[str]) -> str:
        return self.url

    def get_cache_key(self, state: Mapping[str, Any], chain: Chain, fields: List[str]) -> Optional[str]:
        return self.url + json.dumps(dict(state), sort_keys=True, default=str)

    async def fetch(self, state: Mapping[str, Any], chain: Chain, fields: List[str]) -> Any:
        gene_ids = [_strip_version(gene.get("gene_id", "")) for gene in chain.body]
        logger.debug("Fetching gene constraint", extra={"url": self.url, "genes": len(gene_ids)})
        return await fetch_text(
            "POST",
            self.url,
            data={"geneids": json.dumps(gene_ids)},
            client=self.client,
            timeout=self.params.get("timeout"),
        )

    def parse(self, raw, chain, fields, outnames, transforms) -> Chain:
        data = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
        if not isinstance(data, dict):
            raise ParseError("Gene constraint response must be an object keyed by gene id")

        for gene in chain.body:
            constraint = data.get(_strip_version(gene.get("gene_id", "")))
            for name in CONSTRAINT_FIELDS:
                if name in gene:
                    continue
                if constraint:
                    value = constraint.get(name)
                    if isinstance(value, float) and not value.is_integer():
                        value = round(value, 2)
                    gene[name] = value
                else:
                    gene[name] = None
        return Chain(header=chain.header, body=chain.body)


# ---------------------------------------------------------------------
# Region tracks
# ---------------------------------------------------------------------


class RecombinationRateSource(RemoteSource):
    SOURCE_NAME = "RecombLZ"

    def get_url(self, state: Mapping[str, Any], chain: Chain, fields: List[str]) -> str:
        source = state.get("recombsource") or chain.header.get("recombsource") or self.params.get("source") or 15
        return (
            f"{self.url}?filter=id in {source}"
            f" and chromosome eq '{state.get('chr')}'"
            f" and position le {state.get('end')}"
            f" and position ge {state.get('start')}"
        )


class BEDTrackSource(RemoteSource):
    SOURCE_NAME = "BEDLZ"

    def get_url(self, state: Mapping[str, Any], chain: Chain, fields: List[str]) -> str:
        source = state.get("bedtracksource") or chain.header.get("bedtracksource") or self.params.get("source") or 16
        return (
            f"{self.url}?filter=id in {source}"
            f" and chromosome eq '{state.get('chr')}'"
            f" and start le {state.get('end')}"
            f" and end ge {state.get('start')}"
        )


# ---------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------


class StaticSource(BaseSource):
    """Data held in memory, e.g. a significance line. Never touches the network."""

    SOURCE_NAME = "StaticJSON"

    def __init__(self, data: Any, client: Optional[httpx.AsyncClient] = None):
        super().__init__()
        self._data = data

    async def fetch(self, state: Mapping[str, Any], chain: Chain, fields: List[str]) -> Any:
        return self._data

    def to_json(self) -> List[Any]:
        return [self.SOURCE_NAME, self._data]


BUILTIN_SOURCES = (
    AssociationSource,
    LDSource,
    GeneSource,
    GeneConstraintSource,
    RecombinationRateSource,
    BEDTrackSource,
    StaticSource,
)
