"""
Experiment-level metadata following the MIAME convention.

MIAME (Minimum Information About a Microarray Experiment) records who ran an
experiment and how: lab, contact, abstract, publication, hybridization and
preprocessing notes. It mirrors the MIAME class of Bioconductor's Biobase.

The record is immutable. Sequence fields are normalized to tuples and the
free-form ``other`` notes to a ``dict[str, str]``, so equality is structural.

Examples:
    >>> from exprdata.core.miame import MIAME
    >>> m1 = MIAME(name="X", lab="L", contact="c", title="t", abstract="a",
    ...            url="u", pub_med_id="1", samples=["S1"], hybridizations=[],
    ...            norm_controls=[], preprocessing=[])
    >>> m2 = MIAME(name="Y", lab="L", contact="c", title="t", abstract="a",
    ...            url="u", pub_med_id="2", samples=["S2"], hybridizations=[],
    ...            norm_controls=[], preprocessing=[])
    >>> m1.merge(m2).name
    'XY'
    >>> m1.merge(m2).samples
    ('S1', 'S2')
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any, Mapping, NamedTuple

__all__ = ['MIAME', 'ExperimentInfo', 'merge_miame']

_STRING_FIELDS = ('name', 'lab', 'contact', 'title', 'abstract', 'url', 'pub_med_id')
_SEQUENCE_FIELDS = ('samples', 'hybridizations', 'norm_controls', 'preprocessing')

# Bioconductor slot names accepted by from_dict()
_ALIASES = {
    'pubMedIds': 'pub_med_id',
    'normControls': 'norm_controls',
}


class ExperimentInfo(NamedTuple):
    """Contact subset of a MIAME record (Biobase ``expinfo``)."""
    name: str
    lab: str
    contact: str
    title: str
    url: str


@dataclass(frozen=True)
class MIAME:
    """
    Immutable experiment metadata record.

    Attributes:
        name: Experimenter name
        lab: Laboratory
        contact: Contact information (usually an email address)
        title: Single-sentence experiment title
        abstract: Experiment abstract
        url: URL for the experiment
        pub_med_id: PubMed identifier(s)
        samples: Sample descriptions
        hybridizations: Hybridization descriptions
        norm_controls: Normalization controls (e.g. housekeeping genes)
        preprocessing: Preprocessing steps applied to the raw data
        other: Free-form key/value notes not covered by the other fields
    """

    name: str
    lab: str
    contact: str
    title: str
    abstract: str
    url: str
    pub_med_id: str
    samples: tuple[str, ...]
    hybridizations: tuple[str, ...]
    norm_controls: tuple[str, ...]
    preprocessing: tuple[str, ...]
    other: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        for name in _SEQUENCE_FIELDS:
            value = getattr(self, name)
            if isinstance(value, str):
                raise TypeError(f"{name} must be a sequence of strings, got a string")
            object.__setattr__(self, name, tuple(str(v) for v in value))
        object.__setattr__(
            self, 'other', {str(k): str(v) for k, v in dict(self.other).items()}
        )

    # Frozen but holds a dict, so instances are not hashable
    __hash__ = None  # type: ignore[assignment]

    @property
    def notes(self) -> dict[str, str]:
        """Alias for ``other``."""
        return self.other

    def info(self) -> ExperimentInfo:
        """Return name, lab, contact, title and url as a named tuple."""
        return ExperimentInfo(
            name=self.name,
            lab=self.lab,
            contact=self.contact,
            title=self.title,
            url=self.url,
        )

    def merge(self, other: MIAME, sep: str = "") -> MIAME:
        """
        Merge two records field by field.

        String fields are joined as ``self.field + sep + other.field``. With
        the default ``sep=""`` this is plain concatenation ("Name1Name2"),
        which is the historical behaviour; pass a separator such as ``"; "``
        to keep the two values distinguishable. Sequence fields are
        concatenated self-then-other, and ``other`` notes are merged with
        keys from the second record winning.

        Args:
            other: Record appended after this one
            sep: Separator inserted between string fields

        Returns:
            New MIAME record
        """
        if not isinstance(other, MIAME):
            raise TypeError(f"Can only merge MIAME records, got {type(other)}")

        merged: dict[str, Any] = {}
        for name in _STRING_FIELDS:
            merged[name] = getattr(self, name) + sep + getattr(other, name)
        for name in _SEQUENCE_FIELDS:
            merged[name] = getattr(self, name) + getattr(other, name)
        merged['other'] = {**self.other, **other.other}
        return MIAME(**merged)

    def with_samples(self, samples) -> MIAME:
        """Copy of this record with a different ``samples`` tuple."""
        return replace(self, samples=tuple(samples))

    def to_dict(self) -> dict[str, Any]:
        """Flat field set with plain lists/dicts, suitable for JSON."""
        result: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, tuple):
                value = list(value)
            elif isinstance(value, dict):
                value = dict(value)
            result[f.name] = value
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> MIAME:
        """
        Build a record from a flat mapping.

        Accepts the Biobase slot spellings ``pubMedIds`` and ``normControls``.
        Missing string fields default to "" and missing sequence fields to
        empty; an empty list for ``other`` (as R writes it) becomes {}.
        Unknown keys such as ``version`` are ignored.
        """
        normalized = {_ALIASES.get(k, k): v for k, v in data.items()}
        kwargs: dict[str, Any] = {}
        for name in _STRING_FIELDS:
            value = normalized.get(name)
            kwargs[name] = "" if value is None else str(value)
        for name in _SEQUENCE_FIELDS:
            value = normalized.get(name)
            kwargs[name] = () if value is None else value
        other = normalized.get('other') or {}
        kwargs['other'] = dict(other)
        return cls(**kwargs)

    def __str__(self) -> str:
        lines = [
            "MIAME Information:",
            "------------------",
            "",
            f"Name: {self.name}",
            f"Lab: {self.lab}",
            "",
            "Contact:",
            f"  Name: {self.contact}",
            f"  Title: {self.title}",
            "",
            "Abstract:",
            self.abstract,
            "",
            "Additional Information:",
            f"  URL: {self.url}",
            f"  PubMed ID: {self.pub_med_id}",
        ]
        if self.other:
            lines += ["", "Other Information:"]
            lines += [f"  {key}: {value}" for key, value in self.other.items()]
        return "\n".join(lines)


def merge_miame(a: MIAME, b: MIAME, sep: str = "") -> MIAME:
    """Functional form of :meth:`MIAME.merge`."""
    return a.merge(b, sep=sep)
