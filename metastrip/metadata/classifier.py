# metastrip/metadata/classifier.py
"""
Keyword grouping of flat tag collections.

Each tag key ("<directory> - <name>") is lower-cased and tested against the
rules below, top to bottom. The first rule with a keyword contained in the key
wins; keys matching no rule fall through to OTHER. Matching is plain substring
containment, so "date" also matches "validated".
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple

from metastrip.models import MetadataGroup, RawTag

CAMERA = "Camera Information"
LOCATION = "Location Information"
DATE_TIME = "Date & Time Information"
IMAGE = "Image Properties"
OTHER = "Other Metadata"

GROUP_ORDER = (CAMERA, LOCATION, DATE_TIME, IMAGE, OTHER)

RULES: List[Tuple[str, Tuple[str, ...]]] = [
    (CAMERA, (
        "camera", "make", "model", "lens", "focal", "aperture", "iso", "shutter",
        "exposure", "flash", "metering", "white balance", "f-number", "f-stop",
        "manufacturer", "brightness", "contrast", "saturation", "sharpness",
    )),
    (LOCATION, (
        "gps", "latitude", "longitude", "altitude", "location", "coordinates",
        "geo", "position", "place",
    )),
    (DATE_TIME, (
        "date", "time", "timestamp", "created", "modified", "digitized",
        "datetime", "original", "offset",
    )),
    (IMAGE, (
        "width", "height", "resolution", "dimension", "dpi", "orientation",
        "color space", "bits per sample", "compression", "photometric",
        "pixel", "image", "x resolution", "y resolution", "unit",
    )),
]

def group_for(key: str) -> str:
    lowered = key.lower()
    for group, keywords in RULES:
        if any(k in lowered for k in keywords):
            return group
    return OTHER

@dataclass
class ClassifiedTags:
    all_tags: Dict[str, str] = field(default_factory=dict)
    groups: Dict[str, Dict[str, str]] = field(
        default_factory=lambda: {name: {} for name in GROUP_ORDER}
    )

    def group(self, name: str) -> MetadataGroup:
        return MetadataGroup.build(name, self.groups[name])

def classify(tags: Iterable[RawTag]) -> ClassifiedTags:
    result = ClassifiedTags()
    for tag in tags:
        key = tag.key
        # A repeated key keeps its first position and takes the later value.
        result.all_tags[key] = tag.value
    for key, value in result.all_tags.items():
        result.groups[group_for(key)][key] = value
    return result
