# Copyright 2026 Firefly Software Solutions Inc
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Action catalog: action base classes, the registry and the page actions."""

from erpa.agents.tools.base import ActionDefinition, ActionParameter, BaseAction
from erpa.agents.tools.document import DocumentSection, StaticDocumentBridge
from erpa.agents.tools.page import (
    TASK_COMPLETE,
    TASK_COMPLETE_NAME,
    GetContentAction,
    NavigateAction,
    PageBridge,
    ReadOutAction,
    SemanticSearchAction,
    SummarizePageAction,
    create_default_catalog,
)
from erpa.agents.tools.registry import ActionCatalog

__all__ = [
    "ActionCatalog",
    "ActionDefinition",
    "ActionParameter",
    "BaseAction",
    "DocumentSection",
    "GetContentAction",
    "NavigateAction",
    "PageBridge",
    "ReadOutAction",
    "SemanticSearchAction",
    "StaticDocumentBridge",
    "SummarizePageAction",
    "TASK_COMPLETE",
    "TASK_COMPLETE_NAME",
    "create_default_catalog",
]
