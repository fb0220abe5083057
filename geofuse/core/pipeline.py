from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .constants import NO_ID_SENTINEL
from .models import (
    AnalysisResult, MergeConfig, MergeConfigError, MergeReport, Choice, EntityClass,
    ComparisonRow, ComparisonStats, TranslationRow,
)
from .derive import (
    default_id_property, default_selected_properties, editable_translation_keys,
    default_country_selections, has_mergeable_content,
)
from . import config_builders as cb
from ..domain.analyze import analyze
from ..domain.merge import merge_with_report
from ..domain.compare import comparison_rows, comparison_stats, filter_rows, sort_rows
from ..domain.translations import (
    missing_translation_rows, filter_translation_rows, propose_manual_translations,
)
from ..support.settings import Settings, dump_settings
from ..utils.files import load_feature_collection
from ..utils.log import log_line

SLOT_A = "A"
SLOT_B = "B"


class FusionSession:
    """
    Holds two loaded datasets, their analyses and the merge policy.

    Every mutation goes through a method that recomputes derived state in a
    fixed order:

    1. id property (only when an analysis changed)
    2. selected other properties per entity class
    3. editable translation keys
    4. default country selections
    """

    def __init__(self, config: Optional[MergeConfig] = None):
        self.config: MergeConfig = config or MergeConfig()
        self.collections: Dict[str, Optional[Dict[str, Any]]] = {SLOT_A: None, SLOT_B: None}
        self.analyses: Dict[str, Optional[AnalysisResult]] = {SLOT_A: None, SLOT_B: None}
        self.country_selections: Mapping[str, Choice] = MappingProxyType({})
        self.manual_translations: Mapping[str, Mapping[str, str]] = MappingProxyType({})
        self.translation_keys: List[str] = []
        self.last_report: Optional[MergeReport] = None

    # --- loading ---

    @property
    def analysis_a(self) -> Optional[AnalysisResult]:
        return self.analyses[SLOT_A]

    @property
    def analysis_b(self) -> Optional[AnalysisResult]:
        return self.analyses[SLOT_B]

    def load(self, slot: str, collection: Dict[str, Any], file_name: Optional[str] = None) -> AnalysisResult:
        if slot not in (SLOT_A, SLOT_B):
            raise ValueError(f"unknown slot {slot!r}")
        file_name = file_name or collection.get("name") or f"Dataset{slot}"
        analysis = analyze(file_name, collection)
        self.collections[slot] = collection
        self.analyses[slot] = analysis
        log_line(
            f"ANALYZE | slot={slot} file={file_name} features={analysis.num_features} "
            f"name_key={analysis.country_name_property} sov_key={analysis.sovereignty_property_key} "
            f"entities={len(analysis.country_details)}"
        )
        self._recompute(analyses_changed=True)
        return analysis

    def load_file(self, slot: str, path: Union[str, Path]) -> AnalysisResult:
        path = Path(path)
        return self.load(slot, load_feature_collection(path), file_name=path.name)

    def clear(self, slot: str) -> None:
        """Unload one side; manual translations are tied to both and are reset."""
        self.collections[slot] = None
        self.analyses[slot] = None
        self.manual_translations = MappingProxyType({})
        self._recompute(analyses_changed=True)

    # --- derived state ---

    def _recompute(self, analyses_changed: bool = False) -> None:
        a, b = self.analysis_a, self.analysis_b
        if analyses_changed:
            id_property = default_id_property(a, b, self.config.id_property)
            if id_property != self.config.id_property:
                self.config = cb.set_id_property(self.config, id_property)

        for entity_class in EntityClass:
            selected = default_selected_properties(self.config, entity_class, a, b)
            if selected != dict(self.config.other_properties_for(entity_class).selected_properties):
                self.config = cb.set_selected_properties(self.config, entity_class, selected)

        self.translation_keys = editable_translation_keys(a, b)
        self.country_selections = MappingProxyType(default_country_selections(a, b, self.country_selections))

    # --- policy updates ---

    def update_config(self, characteristic, entity_class, sub_field, value) -> MergeConfig:
        self.config = cb.apply_update(self.config, characteristic, entity_class, sub_field, value)
        self._recompute()
        return self.config

    def set_id_property(self, id_property: str) -> MergeConfig:
        self.config = cb.set_id_property(self.config, id_property)
        self._recompute()
        return self.config

    def set_geometry_precision(self, precision: int) -> MergeConfig:
        self.config = cb.set_geometry_precision(self.config, precision)
        return self.config

    def select_country(self, name: str, choice: Optional[Union[Choice, str]]) -> None:
        self.country_selections = cb.set_country_selection(self.country_selections, name, choice)

    def select_countries(self, updates: Mapping[str, Optional[Union[Choice, str]]]) -> None:
        self.country_selections = cb.set_country_selections(self.country_selections, updates)

    def set_manual_translation(self, id_value: str, key: str, value: str) -> None:
        self.manual_translations = cb.set_manual_translation(self.manual_translations, id_value, key, value)

    def apply_settings(self, settings: Settings) -> None:
        self.config = settings.merge_config
        self.country_selections = MappingProxyType(dict(settings.country_selections))
        self.manual_translations = cb.merge_manual_translations({}, settings.manual_translations)
        self._recompute()
        log_line(
            f"SETTINGS | loaded id={self.config.id_property} selections={len(self.country_selections)} "
            f"manual={len(self.manual_translations)}"
        )

    def settings(self) -> Dict[str, Any]:
        return dump_settings(self.config, self.country_selections, self.manual_translations)

    # --- views ---

    def comparison(self, text: str = "", sort_key: str = "name", descending: bool = False,
                   group_by_sovereign: bool = False) -> List[ComparisonRow]:
        a, b = self.analysis_a, self.analysis_b
        rows = comparison_rows(a.country_details if a else [], b.country_details if b else [])
        rows = filter_rows(rows, text)
        return sort_rows(rows, sort_key, descending, self.country_selections, group_by_sovereign)

    def comparison_stats(self) -> Dict[EntityClass, ComparisonStats]:
        a, b = self.analysis_a, self.analysis_b
        return comparison_stats(comparison_rows(a.country_details if a else [], b.country_details if b else []))

    def missing_translations(self, text: str = "", show_dependent: bool = True) -> List[TranslationRow]:
        rows = missing_translation_rows(
            self.collections[SLOT_A], self.collections[SLOT_B],
            self.analysis_a, self.analysis_b,
            self.config.id_property, self.country_selections,
        )
        return filter_translation_rows(rows, text, show_dependent)

    def apply_dictionary(self, dictionary: Mapping[str, Mapping[str, str]],
                         rows: Optional[List[TranslationRow]] = None) -> int:
        """Backfill manual translations from a dictionary; returns the number of values added."""
        if rows is None:
            rows = self.missing_translations()
        proposals = propose_manual_translations(rows, self.translation_keys, dictionary, self.manual_translations)
        self.manual_translations = cb.merge_manual_translations(self.manual_translations, proposals)
        applied = sum(len(v) for v in proposals.values())
        log_line(f"TRANSLATIONS | dictionary applied={applied} entities={len(proposals)}")
        return applied

    # --- fusion ---

    def can_configure(self) -> bool:
        id_property = self.config.id_property
        return bool(
            self.analysis_a and self.analysis_b
            and id_property and id_property != NO_ID_SENTINEL
        )

    def can_fuse(self) -> bool:
        return self.can_configure() and has_mergeable_content(self.config)

    def fuse(self) -> Tuple[Dict[str, Any], MergeReport]:
        collection_a, collection_b = self.collections[SLOT_A], self.collections[SLOT_B]
        if collection_a is None or collection_b is None:
            raise MergeConfigError("Both GeoJSON files must be successfully loaded before fusing.")
        fused, report = merge_with_report(
            collection_a, collection_b, self.config,
            self.analysis_a, self.analysis_b,
            self.country_selections, self.manual_translations,
        )
        self.last_report = report
        log_line(
            f"FUSE | id={self.config.id_property} precision={self.config.geometry_precision} "
            f"kept={len(report.kept_ids)} dropped_selection={len(report.dropped_by_selection)} "
            f"dropped_geometry={len(report.dropped_no_geometry)}"
        )
        return fused, report
