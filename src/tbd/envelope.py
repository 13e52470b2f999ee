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

import openstudio

from src.tbd.geo import CN, _dg, validate, transforms, trueNormal, offset
from src.tbd.geo import fits, overlaps, p3Dv
from src.tbd.conditioning import isUnconditioned
from src.tbd.records import Kind, Opening, Boundary, Layer
from src.tbd.records import Surface, Subsurface


def rsi(lc=None, film=0.0, t=0.0, dg=None) -> float:
    """Returns a construction's 'standard calc' thermal resistance (m2•K/W),
    which includes air film resistances. It excludes insulating effects of
    shades, screens, etc. in the case of fenestrated constructions.

    Args:
        lc (openstudio.model.LayeredConstruction):
            an OpenStudio layered construction
        film (float):
            thermal resistance of surface air films (m2•K/W)
        t (float):
            gas temperature (°C) (optional)
        dg (Diagnostics): run log.

    Returns:
        float: A layered construction's thermal resistance.
        0.0: If invalid input (see logs).
    """
    mth = "tbd.rsi"
    cl  = openstudio.model.LayeredConstruction
    dg  = _dg(dg)

    if not isinstance(lc, cl):
        return dg.mismatch("lc", lc, cl, mth, CN.DBG, 0.0)

    try:
        film = float(film)
    except (TypeError, ValueError):
        return dg.mismatch("film", film, float, mth, CN.DBG, 0.0)

    try:
        t = float(t)
    except (TypeError, ValueError):
        return dg.mismatch("temp K", t, float, mth, CN.DBG, 0.0)

    t += 273.0 # °C to K

    if t < 0:    return dg.negative("temp K", mth, CN.ERR, 0.0)
    if film < 0: return dg.negative("film", mth, CN.ERR, 0.0)

    r = film

    for m in lc.layers():
        if m.to_SimpleGlazing():
            return 1 / m.to_SimpleGlazing().get().uFactor()
        elif m.to_StandardGlazing():
            r += m.to_StandardGlazing().get().thermalResistance()
        elif m.to_RefractionExtinctionGlazing():
            r += m.to_RefractionExtinctionGlazing().get().thermalResistance()
        elif m.to_Gas():
            r += m.to_Gas().get().getThermalResistance(t)
        elif m.to_GasMixture():
            r += m.to_GasMixture().get().getThermalResistance(t)
        elif m.to_StandardOpaqueMaterial():
            r += m.to_StandardOpaqueMaterial().get().thermalResistance()
        elif m.to_MasslessOpaqueMaterial():
            r += m.to_MasslessOpaqueMaterial().get().thermalResistance()
        elif m.to_RoofVegetation():
            r += m.to_RoofVegetation().get().thermalResistance()
        elif m.to_AirGap():
            r += m.to_AirGap().get().thermalResistance()

    return r


def insulatingLayer(lc=None, dg=None) -> dict:
    """Identifies a layered construction's (opaque) insulating layer, i.e.
    its most resistive massless (RSi >= 0.001) or standard (d >= 3mm and
    k <= 3 W/m.K) material.

    Args:
        lc (openstudio.model.LayeredConstruction):
            an OpenStudio layered construction
        dg (Diagnostics): run log.

    Returns:
        An insulating-layer dictionary:
            - "index" (int): construction's insulating layer index [0, n layers)
            - "type" (Layer): layer material type (STANDARD or MASSLESS)
            - "r" (float): material thermal resistance in m2•K/W.
        If unsuccessful, dictionary is voided as follows (see logs):
            "index": None
            "type": None
            "r": 0.0
    """
    mth = "tbd.insulatingLayer"
    cl  = openstudio.model.LayeredConstruction
    res = dict(index=None, type=None, r=0.0)

    if not isinstance(lc, cl):
        return _dg(dg).mismatch("lc", lc, cl, mth, CN.DBG, res)

    for i, l in enumerate(lc.layers()):
        if l.to_MasslessOpaqueMaterial():
            l = l.to_MasslessOpaqueMaterial().get()
            r = l.thermalResistance()

            if r < 0.001 or r < res["r"]: continue

            res["r"    ] = r
            res["index"] = i
            res["type" ] = Layer.MASSLESS
        elif l.to_StandardOpaqueMaterial():
            l = l.to_StandardOpaqueMaterial().get()
            k = l.thermalConductivity()
            d = l.thickness()

            if d < 0.003 or k > 3.0 or d / k < res["r"]: continue

            res["r"    ] = d / k
            res["index"] = i
            res["type" ] = Layer.STANDARD

    return res


def areSpandrels(surfaces=None, dg=None) -> bool:
    """Validates whether one or more opaque surface(s) can be considered as
    curtain wall (or similar technology) spandrels, regardless of construction
    layers, by looking up AdditionalProperties or identifiers.

    Args:
        surfaces (list): One or more openstudio.model.Surface instances.
        dg (Diagnostics): run log.

    Returns:
        bool: Whether surface(s) can be considered 'spandrels'.
        False: If invalid input (see logs).
    """
    mth = "tbd.areSpandrels"
    cl  = openstudio.model.Surface
    dg  = _dg(dg)

    if isinstance(surfaces, cl):
        surfaces = [surfaces]
    else:
        try:
            surfaces = list(surfaces)
        except TypeError:
            return dg.mismatch("surfaces", surfaces, list, mth, CN.DBG, False)

    for i, s in enumerate(surfaces):
        if not isinstance(s, cl):
            return dg.mismatch("surface %d" % i, s, cl, mth, CN.DBG, False)

        if s.additionalProperties().hasFeature("spandrel"):
            val = s.additionalProperties().getFeatureAsBoolean("spandrel")

            if val:
                if val.get() is True: continue

                return False

            dg.invalid("spandrel %d" % i, mth, 1, CN.ERR)

        if "spandrel" not in s.nameString().lower(): return False

    return True


def _coplanar(s1=None, s2=None) -> bool:
    """Returns True if 2 planar surfaces share the same plane (within TOL)."""
    p1 = s1.plane()
    p2 = s2.plane()
    n1 = openstudio.Vector3d(p1.a(), p1.b(), p1.c())
    n2 = openstudio.Vector3d(p2.a(), p2.b(), p2.c())

    if abs(n1.dot(n2) - 1) > CN.TOL: return False

    return abs(p1.d() - p2.d()) < CN.TOL


def uFactor(s=None, film=0.0, dg=None):
    """Returns a subsurface's U-factor (W/m2•K), in order of priority: its
    (simple glazing or assembly) U-factor, the effective resistance of its
    tubular daylighting device, an additional property "uFactor" (subsurface
    first, then its construction), and finally the inverse of its layered
    construction resistance (including parent surface film resistances).

    Args:
        s (openstudio.model.SubSurface): A subsurface.
        film (float): parent surface film resistances (m2•K/W).
        dg (Diagnostics): run log.

    Returns:
        float: U-factor (None if unavailable or invalid input - see logs).
    """
    mth = "tbd.uFactor"
    cl  = openstudio.model.SubSurface

    if not isinstance(s, cl):
        return _dg(dg).mismatch("subsurface", s, cl, mth, CN.DBG, None)

    if s.uFactor(): return s.uFactor().get()

    if "tubular" in s.subSurfaceType().lower():
        tdd = s.daylightingDeviceTubular()

        if tdd:
            r = tdd.get().effectiveThermalResistance()
            if r > CN.TOL: return 1 / r

    u = s.additionalProperties().getFeatureAsDouble("uFactor")
    if u: return u.get()

    if not s.construction(): return None

    c = s.construction().get()
    u = c.additionalProperties().getFeatureAsDouble("uFactor")
    if u: return u.get()

    lc = c.to_LayeredConstruction()
    if not lc: return None

    r = rsi(lc.get(), film, 0.0, dg)
    if r < CN.TOL: return None

    return 1 / r


def _subsurfaces(surface=None, n=None, r=0, dg=None) -> dict:
    """Returns valid Subsurface records (local coordinates) of a surface,
    keyed by id. Frame & divider widths offset subsurface vertices, as long
    as all offset subsurfaces fit within their parent, and do not overlap
    each other. Otherwise, all of them revert to their original vertices.
    """
    mth  = "tbd.subsurfaces"
    subs = {}
    fd   = False
    nom  = surface.nameString()
    dg   = _dg(dg)

    for s in sorted(surface.subSurfaces(), key=lambda sub: sub.nameString()):
        if not validate(s, dg): continue

        id  = s.nameString()
        vec = list(s.vertices())

        if len(vec) not in (3, 4):
            dg.log(CN.ERR, "Skipping '%s': vertex # 3 or 4 (%s)" % (id, mth))
            continue

        area     = s.grossArea()
        typ      = s.subSurfaceType().lower()
        kind     = Opening.of(typ)
        glazed   = kind == Opening.DOOR and "glass" in typ
        unhinged = "dome" in typ and not _coplanar(s, surface)
        nn       = trueNormal(s, r, dg) if unhinged else n

        if area < CN.TOL:
            dg.log(CN.ERR, "Skipping '%s': gross area ~zero (%s)" % (id, mth))
            continue

        if not s.construction():
            dg.log(CN.ERR, "Skipping '%s': missing construction (%s)" % (id, mth))
            continue

        if not s.construction().get().to_LayeredConstruction():
            dg.log(CN.WRN, "Skipping '%s': subs limited to layered constructions (%s)" % (id, mth))
            continue

        u = uFactor(s, surface.filmResistance(), dg)

        if u is None:
            dg.log(CN.ERR, "Skipping '%s': U-factor unavailable (%s)" % (id, mth))
            continue

        points = s.vertices()

        if s.allowWindowPropertyFrameAndDivider() and s.windowPropertyFrameAndDivider():
            width  = s.windowPropertyFrameAndDivider().get().frameWidth()
            points = offset(s.vertices(), width, dg)
            oa     = openstudio.getArea(points)

            if not oa:
                dg.log(CN.ERR, "Skipping '%s': invalid offset (%s)" % (id, mth))
                continue

            fd   = True
            area = oa.get()

        subs[id] = Subsurface(id=id,
                              kind=kind,
                              v=s.vertices(),
                              points=points,
                              n=nn,
                              gross=s.grossArea(),
                              area=area,
                              u=u,
                              unhinged=unhinged,
                              glazed=glazed,
                              mult=s.multiplier())

    if not fd: return subs

    valid = True

    for id, sub in subs.items():
        if not fits(sub.points, surface.vertices(), dg):
            dg.log(CN.ERR, "Skipping '%s': can't fit in '%s' (%s)" % (id, nom, mth))
            valid = False
            break

        for i, sb in subs.items():
            if i == id: continue

            if overlaps(sb.points, sub.points, dg):
                dg.log(CN.ERR, "Skipping '%s': overlaps sibling '%s' (%s)" % (id, i, mth))
                valid = False
                break

        if not valid: break

    for sub in subs.values():
        if valid:
            sub.gross = sub.area
        else:
            sub.points = sub.v
            sub.area   = sub.gross

    return subs


def properties(model=None, surface=None, argh={}, dg=None):
    """Fetches OpenStudio surface properties, including subsurfaces (openings).

    Args:
        model (openstudio.model.Model): a model.
        surface (openstudio.model.Surface): an opaque surface.
        argh (dict): processing options ("setpoints" is expected).
        dg (Diagnostics): run log.

    Returns:
        Surface: surface record (None if invalid input - see logs).
    """
    mth = "tbd.properties"
    cl1 = openstudio.model.Model
    cl2 = openstudio.model.Surface
    dg  = _dg(dg)

    if not isinstance(model, cl1): return dg.mismatch("model", model, cl1, mth)
    if not isinstance(surface, cl2): return dg.mismatch("surface", surface, cl2, mth)
    if not validate(surface, dg): return None

    nom = surface.nameString()

    if not surface.space(): return dg.empty("'%s' space" % nom, mth, CN.ERR)

    space = surface.space().get()
    tr    = transforms(space, dg)

    if tr["t"] is None or tr["r"] is None:
        return dg.invalid("'%s' transform" % nom, mth, 0, CN.FTL)

    t = tr["t"]
    n = trueNormal(surface, tr["r"], dg)
    if n is None: return dg.invalid("'%s' normal" % nom, mth, 0, CN.FTL)

    boundary = Boundary.of(surface.outsideBoundaryCondition())
    adjacent = None

    if boundary == Boundary.SURFACE:
        if not surface.adjacentSurface():
            return dg.invalid("'%s': adjacent surface" % nom, mth, 0, CN.ERR)

        adjacent = surface.adjacentSurface().get().nameString()

    conditioned = True

    if argh.get("setpoints"): conditioned = not isUnconditioned(space, dg)

    surf = Surface(id=nom,
                   kind=Kind.of(surface.surfaceType()),
                   boundary=boundary,
                   space=space,
                   n=n,
                   gross=surface.grossArea(),
                   adjacent=adjacent,
                   ground=surface.isGroundSurface(),
                   conditioned=conditioned,
                   occupied=space.partofTotalFloorArea(),
                   spandrel=areSpandrels(surface, dg))

    if space.spaceType():     surf.stype = space.spaceType().get()
    if space.buildingStory(): surf.story = space.buildingStory().get()

    if surface.construction():
        lc = surface.construction().get().to_LayeredConstruction()

        if lc:
            lc  = lc.get()
            lyr = insulatingLayer(lc, dg)

            if lyr["index"] is not None and 0 <= lyr["index"] < len(lc.layers()):
                surf.construction = lc
                surf.index        = lyr["index"]
                surf.ltype        = lyr["type"]
                surf.r            = lyr["r"]

    subs = _subsurfaces(surface, n, tr["r"], dg)

    surf.net    = surf.gross - sum(sub.area for sub in subs.values())
    surf.points = list(t * p3Dv(surface))
    surf.minz   = min(pt.z() for pt in surf.points)

    for sub in sorted(subs.values(), key=lambda sb: min(pt.z() for pt in t * p3Dv(sb.points))):
        sub.points = list(t * p3Dv(sub.points))
        sub.minz   = min(pt.z() for pt in sub.points)

        if sub.kind == Opening.WINDOW:
            surf.windows[sub.id] = sub
        elif sub.kind == Opening.DOOR:
            surf.doors[sub.id] = sub
        else:
            surf.skylights[sub.id] = sub

    return surf


def owners(surfaces={}) -> dict:
    """Returns parent surface ids of subsurfaces, keyed by subsurface id."""
    index = {}

    for id, surface in surfaces.items():
        for i in surface.openings(): index[i] = id

    return index
