from .composition import (
    Composition, MONOSACCHARIDE_SLOTS, SLOT_NAMES, SCALED_MASS_TABLE, MASS_SCALE,
    empty_composition, make_composition, composition_sum, composition_subtract,
    composition_total, composition_mass, scaled_to_mass, composition_to_string,
    parse_kind_string, parse_named_composition, parse_structure, parse_composition,
    from_glycan_composition)

from .glycan import Glycan, GlycanDatabase

from .glycan_box import (
    GlycanBox, SUGAR_SHIFT, make_glycan_box, empty_glycan_box,
    build_glycan_boxes, build_child_boxes, GlycanBoxCollection)


__all__ = [
    "Composition", "MONOSACCHARIDE_SLOTS", "SLOT_NAMES", "SCALED_MASS_TABLE", "MASS_SCALE",
    "empty_composition", "make_composition", "composition_sum", "composition_subtract",
    "composition_total", "composition_mass", "scaled_to_mass", "composition_to_string",
    "parse_kind_string", "parse_named_composition", "parse_structure", "parse_composition",
    "from_glycan_composition",
    "Glycan", "GlycanDatabase",
    "GlycanBox", "SUGAR_SHIFT", "make_glycan_box", "empty_glycan_box",
    "build_glycan_boxes", "build_child_boxes", "GlycanBoxCollection",
]
