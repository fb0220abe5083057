from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import List, Optional, Dict, Any, Mapping, Union

from .constants import DEFAULT_ID_PROPERTY, DEFAULT_GEOMETRY_PRECISION


class MergeConfigError(ValueError):
    """Merge configuration is unusable (empty or sentinel id property, bad shape)."""


class SettingsError(ValueError):
    """Settings artifact failed validation."""


class InvalidGeoJSONError(ValueError):
    """Input is not a FeatureCollection."""


class Source(str, Enum):
    FILE_A = "fileA"
    FILE_B = "fileB"
    DISCARD = "discard"


class Choice(str, Enum):
    A = "A"
    B = "B"
    DISCARD = "discard"


class EntityClass(str, Enum):
    RECOGNIZED = "recognized"
    DEPENDENT = "dependent"


class Characteristic(str, Enum):
    TRANSLATIONS = "translationsSource"
    OTHER_PROPERTIES = "otherPropertiesSource"


def _source(value: Any, allowed: tuple, where: str) -> Source:
    try:
        src = Source(value)
    except ValueError:
        raise MergeConfigError(f"{where}: invalid primary {value!r}")
    if src not in allowed:
        raise MergeConfigError(f"{where}: primary {value!r} not allowed here")
    return src


def _as_dict(value: Any, where: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise MergeConfigError(f"{where} must be an object")
    return value


@dataclass(frozen=True)
class CountryDetail:
    name: str
    is_dependency: bool = False
    sovereign_state: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {"name": self.name, "isDependency": self.is_dependency}
        if self.sovereign_state is not None:
            d["sovereignState"] = self.sovereign_state
        return d


@dataclass(frozen=True)
class AnalysisResult:
    file_name: str
    num_features: int
    languages: List[str] = field(default_factory=list)
    geometry_precision_score: int = 0  # sum of coordinate counts
    max_coordinate_precision: int = 0
    common_properties: List[str] = field(default_factory=list)
    potential_id_keys: List[str] = field(default_factory=list)
    country_name_property: Optional[str] = None
    sovereignty_property_key: Optional[str] = None
    country_details: List[CountryDetail] = field(default_factory=list)

    def details_by_name(self) -> Dict[str, CountryDetail]:
        return {cd.name: cd for cd in self.country_details}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fileName": self.file_name,
            "numFeatures": self.num_features,
            "languages": list(self.languages),
            "geometryPrecisionScore": self.geometry_precision_score,
            "maxCoordinatePrecision": self.max_coordinate_precision,
            "commonProperties": list(self.common_properties),
            "potentialIdKeys": list(self.potential_id_keys),
            "countryNameProperty": self.country_name_property,
            "sovereigntyPropertyKey": self.sovereignty_property_key,
            "countryDetails": [cd.to_dict() for cd in self.country_details],
        }


@dataclass(frozen=True)
class TranslationPreference:
    primary: Source = Source.FILE_A
    additive: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {"primary": self.primary.value, "additive": self.additive}


@dataclass(frozen=True)
class OtherPropertiesPreference:
    primary: Source = Source.FILE_A
    additive: bool = True
    selected_properties: Mapping[str, bool] = field(default_factory=dict)

    def __post_init__(self):
        # read-only view over a private copy
        object.__setattr__(self, "selected_properties", MappingProxyType(dict(self.selected_properties)))

    def is_selected(self, key: str) -> bool:
        return self.selected_properties.get(key) is True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "primary": self.primary.value,
            "additive": self.additive,
            "selectedProperties": dict(self.selected_properties),
        }


@dataclass(frozen=True)
class TranslationsSource:
    recognized: TranslationPreference = field(default_factory=TranslationPreference)
    dependent: TranslationPreference = field(default_factory=TranslationPreference)


@dataclass(frozen=True)
class OtherPropertiesSource:
    recognized: OtherPropertiesPreference = field(default_factory=OtherPropertiesPreference)
    dependent: OtherPropertiesPreference = field(default_factory=OtherPropertiesPreference)


@dataclass(frozen=True)
class MergeConfig:
    id_property: str = DEFAULT_ID_PROPERTY
    geometry_precision: int = DEFAULT_GEOMETRY_PRECISION
    translations_source: TranslationsSource = field(default_factory=TranslationsSource)
    other_properties_source: OtherPropertiesSource = field(default_factory=OtherPropertiesSource)

    def translations_for(self, entity_class: EntityClass) -> TranslationPreference:
        return getattr(self.translations_source, EntityClass(entity_class).value)

    def other_properties_for(self, entity_class: EntityClass) -> OtherPropertiesPreference:
        return getattr(self.other_properties_source, EntityClass(entity_class).value)

    def to_dict(self) -> Dict[str, Any]:
        ts, ops = self.translations_source, self.other_properties_source
        return {
            "idProperty": self.id_property,
            "geometryPrecision": self.geometry_precision,
            "translationsSource": {
                "recognized": ts.recognized.to_dict(),
                "dependent": ts.dependent.to_dict(),
            },
            "otherPropertiesSource": {
                "recognized": ops.recognized.to_dict(),
                "dependent": ops.dependent.to_dict(),
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MergeConfig":
        """
        Parse the camelCase JSON form used by the settings artifact.

        Unknown keys (e.g. a legacy ``geometrySource`` block) are ignored.
        Raises MergeConfigError on shape errors.
        """
        data = _as_dict(data, "mergeConfig")

        id_property = data.get("idProperty", DEFAULT_ID_PROPERTY)
        if not isinstance(id_property, str):
            raise MergeConfigError("mergeConfig.idProperty must be a string")

        precision = data.get("geometryPrecision", DEFAULT_GEOMETRY_PRECISION)
        if isinstance(precision, bool) or not isinstance(precision, (int, float)):
            raise MergeConfigError("mergeConfig.geometryPrecision must be a number")

        ts = _as_dict(data.get("translationsSource", {}), "mergeConfig.translationsSource")
        ops = _as_dict(data.get("otherPropertiesSource", {}), "mergeConfig.otherPropertiesSource")

        def _translation(entity: EntityClass) -> TranslationPreference:
            where = f"translationsSource.{entity.value}"
            raw = _as_dict(ts.get(entity.value, {}), where)
            allowed = (Source.FILE_A, Source.FILE_B)
            if entity is EntityClass.DEPENDENT:
                allowed = allowed + (Source.DISCARD,)
            return TranslationPreference(
                primary=_source(raw.get("primary", Source.FILE_A.value), allowed, where),
                additive=bool(raw.get("additive", True)),
            )

        def _other(entity: EntityClass) -> OtherPropertiesPreference:
            where = f"otherPropertiesSource.{entity.value}"
            raw = _as_dict(ops.get(entity.value, {}), where)
            selected = _as_dict(raw.get("selectedProperties", {}), where + ".selectedProperties")
            return OtherPropertiesPreference(
                primary=_source(raw.get("primary", Source.FILE_A.value), tuple(Source), where),
                additive=bool(raw.get("additive", True)),
                selected_properties={str(k): v is True for k, v in selected.items()},
            )

        return cls(
            id_property=id_property,
            geometry_precision=int(precision),
            translations_source=TranslationsSource(
                recognized=_translation(EntityClass.RECOGNIZED),
                dependent=_translation(EntityClass.DEPENDENT),
            ),
            other_properties_source=OtherPropertiesSource(
                recognized=_other(EntityClass.RECOGNIZED),
                dependent=_other(EntityClass.DEPENDENT),
            ),
        )


@dataclass
class MergeReport:
    kept_ids: List[Union[str, int, float]] = field(default_factory=list)
    dropped_by_selection: List[Union[str, int, float]] = field(default_factory=list)
    dropped_no_geometry: List[Union[str, int, float]] = field(default_factory=list)


@dataclass(frozen=True)
class ComparisonRow:
    name: str
    is_dependency: bool
    sovereign_state: str
    in_a: bool
    in_b: bool


@dataclass
class ComparisonStats:
    common: int = 0
    unique_a: int = 0
    unique_b: int = 0


@dataclass(frozen=True)
class TranslationRow:
    id_value: str
    display_name: str
    is_dependency: bool
    feature_a: Optional[Dict[str, Any]] = None
    feature_b: Optional[Dict[str, Any]] = None
    english_name: Optional[str] = None
