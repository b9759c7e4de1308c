# Copyright (c) 2018, Joshua Klein
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#  http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from glycoloc.version import version

from glycoloc.structure import (
    GlycanDatabase, Glycan, GlycanBox, GlycanBoxCollection,
    build_glycan_boxes, build_child_boxes)

from glycoloc.tandem.localization import (
    LocalizationGraph, Route, SitePlacement, LocalizationLevel,
    GlycanLocalizer, LocalizationDispatcher, LocalizationTask,
    LocalizationParameters, LocalizationResult)

__all__ = [
    "version",
    "GlycanDatabase", "Glycan", "GlycanBox", "GlycanBoxCollection",
    "build_glycan_boxes", "build_child_boxes",
    "LocalizationGraph", "Route", "SitePlacement", "LocalizationLevel",
    "GlycanLocalizer", "LocalizationDispatcher", "LocalizationTask",
    "LocalizationParameters", "LocalizationResult",
]
