# -*- Mode:Python; indent-tabs-mode:nil; tab-width:4 -*-
#
# Copyright 2025 Canonical Ltd.
#
# This program is free software; you can redistribute it and/or
# modify it under the terms of the GNU Lesser General Public
# License version 3 as published by the Free Software Foundation.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the GNU
# Lesser General Public License for more details.
#
# You should have received a copy of the GNU Lesser General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.

"""Engine configuration."""

import pydantic

DEFAULT_MAX_LINK_DEPTH = 40


class EngineConfig(pydantic.BaseModel, frozen=True):  # type: ignore[misc]
    """Tunables for tree resolution.

    Each image carries its own configuration, there are no global settings.
    """

    model_config = pydantic.ConfigDict(
        alias_generator=lambda s: s.replace("_", "-"),
        populate_by_name=True,
        extra="forbid",
    )

    max_link_depth: int = pydantic.Field(
        default=DEFAULT_MAX_LINK_DEPTH,
        gt=0,
        description="Maximum number of symbolic links followed in a single lookup.",
    )
