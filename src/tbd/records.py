# BSD 3-Clause License
#
# Copyright (c) 2022-2025, rd2
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
# 1. Redistributions of source code must retain the above copyright notice, this
#    list of conditions and the following disclaimer.
#
# 2. Redistributions in binary form must reproduce the above copyright notice,
#    this list of conditions and the following disclaimer in the documentation
#    and/or other materials provided with the distribution.
#
# 3. Neither the name of the copyright holder nor the names of its
#    contributors may be used to endorse or promote products derived from
#    this software without specific prior written permission.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
# AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
# IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE
# DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE LIABLE
# FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL
# DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR
# SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER
# CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY,
# OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE
# OF THIS SOFTWARE, EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.

import enum
import openstudio
from dataclasses import dataclass, field
from typing import Optional

# TBD entity records: opaque surfaces, subsurfaces (openings), shades, edges
# and per-edge surface links. Optional attributes remain None until set by
# the processing stage that owns them.

class Kind(enum.Enum):
    """Opaque surface kind."""
    WALL    = "wall"
    FLOOR   = "floor"
    CEILING = "ceiling"

    @classmethod
    def of(cls, surface_type=""):
        """Maps an OpenStudio surface type (e.g. "RoofCeiling") to a kind."""
        typ = str(surface_type).lower()

        if "wall"    in typ: return cls.WALL
        if "ceiling" in typ: return cls.CEILING

        return cls.FLOOR


class Opening(enum.Enum):
    """Subsurface kind."""
    WINDOW   = "window"
    DOOR     = "door"
    SKYLIGHT = "skylight"

    @classmethod
    def of(cls, subsurface_type=""):
        """Maps an OpenStudio subsurface type (e.g. "GlassDoor") to a kind."""
        typ = str(subsurface_type).lower()

        if "window" in typ: return cls.WINDOW
        if "door"   in typ: return cls.DOOR

        return cls.SKYLIGHT


class Boundary(enum.Enum):
    """Outside boundary condition of an opaque surface."""
    OUTDOORS   = "outdoors"
    GROUND     = "ground"
    FOUNDATION = "foundation"
    SURFACE    = "surface"
    OTHER      = "othersidecoefficients"
    ADIABATIC  = "adiabatic"

    @classmethod
    def of(cls, condition=""):
        """Maps an OpenStudio outside boundary condition to a boundary."""
        bc = str(condition).lower()

        if bc == "outdoors":              return cls.OUTDOORS
        if bc == "surface":               return cls.SURFACE
        if bc.startswith("otherside"):    return cls.OTHER
        if bc == "adiabatic":             return cls.ADIABATIC
        if "foundation" in bc:            return cls.FOUNDATION

        return cls.GROUND


class Layer(enum.Enum):
    """Insulating layer material type."""
    MASSLESS = "massless"
    STANDARD = "standard"


@dataclass
class Subsurface:
    id      : str
    kind    : Opening
    v       : list          # original (local) vertices
    points  : list          # site vertices (possibly offset by frame width)
    n       : openstudio.Vector3d
    gross   : float
    area    : float
    u       : float
    unhinged: bool = False  # e.g. tubular daylighting device dome
    glazed  : bool = False  # glass door
    mult    : int  = 1
    minz    : float = 0.0
    hole    : Optional[object] = None # topology.Wire


@dataclass
class Surface:
    id          : str
    kind        : Kind
    boundary    : Boundary
    space       : openstudio.model.Space
    n           : openstudio.Vector3d
    gross       : float
    net         : float = 0.0
    points      : list  = field(default_factory=list)
    minz        : float = 0.0
    adjacent    : Optional[str] = None  # adjacent surface id
    story       : Optional[object] = None
    stype       : Optional[object] = None
    ground      : bool = False
    conditioned : bool = True
    occupied    : bool = True
    spandrel    : bool = False
    deratable   : bool = False
    construction: Optional[object] = None # LayeredConstruction
    index       : Optional[int]   = None  # insulating layer index
    ltype       : Optional[Layer] = None
    r           : Optional[float] = None  # insulating layer RSi (m2.K/W)
    windows     : dict = field(default_factory=dict)
    doors       : dict = field(default_factory=dict)
    skylights   : dict = field(default_factory=dict)
    face        : Optional[object] = None # topology.Face
    edges       : dict = field(default_factory=dict) # id: Bridge
    pts         : dict = field(default_factory=dict) # KHI id: dict(val=, n=)
    heatloss    : Optional[float] = None  # W/K
    ratio       : Optional[float] = None  # % RSi change
    u           : Optional[float] = None  # un-derated Uo (W/m2.K)
    r_heatloss  : Optional[float] = None  # residual (unapplied) W/K

    def openings(self) -> dict:
        """Returns all subsurfaces, keyed by id."""
        subs = {}
        subs.update(self.windows)
        subs.update(self.doors)
        subs.update(self.skylights)

        return subs

    def names(self) -> dict:
        """Returns story, space type & space names of the surface."""
        names = dict(story=None, stype=None, space=self.space.nameString())

        if self.story: names["story"] = self.story.nameString()
        if self.stype: names["stype"] = self.stype.nameString()

        return names


@dataclass
class Shade:
    id    : str
    points: list
    minz  : float
    n     : openstudio.Vector3d
    face  : Optional[object] = None


@dataclass
class Link:
    """A surface (or subsurface, or shade) bordering an edge."""
    wire  : Optional[object] = None  # topology.Wire
    angle : Optional[float]  = None  # radians, [0, 2PI)
    polar : Optional[openstudio.Vector3d] = None
    normal: Optional[openstudio.Vector3d] = None
    psi   : dict = field(default_factory=dict) # surface-level PSI override
    set   : Optional[str] = None


@dataclass
class Bridge:
    """An edge's contribution to a deratable surface."""
    psi   : float # apportioned PSI (W/K.m)
    type  : str
    length: float
    ratio : float


@dataclass
class Edge:
    id        : str
    v0        : openstudio.Point3d
    v1        : openstudio.Point3d
    length    : float
    surfaces  : dict = field(default_factory=dict) # id: Link (sorted by angle)
    horizontal: bool = False
    vertical  : bool = False
    psi       : dict = field(default_factory=dict) # PSI type: value
    set       : Optional[str] = None  # retained PSI set id
    sets      : dict = field(default_factory=dict) # PSI type: PSI set id
    groups    : dict = field(default_factory=dict) # group: {set: {type: val}}
    mult      : Optional[int] = None
    io_type   : Optional[str] = None
    io_set    : Optional[str] = None
