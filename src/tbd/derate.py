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
from oslg import oslg

from src.tbd.geo import CN, _dg
from src.tbd.records import Bridge, Layer, Surface
from src.tbd.envelope import owners, rsi


def apportion(surfaces={}, holes={}, edges={}, dg=None) -> bool:
    """Assigns heat loss from classified edges to linked deratable surfaces,
    in proportion to the RSi of their insulating layers. An edge retains its
    most conductive PSI type, and its length is scaled by its multiplier (if
    any). Edges linking 2 subsurfaces are ignored. If an edge links a
    subsurface, its parent surface (the "dad") and another deratable surface
    (an "uncle"), the uncle is pruned: only the dad is derated.

    Args:
        surfaces (dict): TBD Surface records, keyed by id.
        holes (dict): subsurface hole wires, keyed by subsurface id.
        edges (dict): classified TBD Edge records, keyed by id.
        dg (Diagnostics): run log.

    Returns:
        bool: Whether successful (False if invalid input - see logs).
    """
    mth = "tbd.apportion"
    dg  = _dg(dg)

    for id, arg in dict(surfaces=surfaces, holes=holes, edges=edges).items():
        if not isinstance(arg, dict):
            return dg.mismatch(id, arg, dict, mth, CN.DBG, False)

    own = owners(surfaces)

    for surface in surfaces.values():
        surface.edges    = {}
        surface.heatloss = None

    for id, edge in edges.items():
        if not edge.psi: continue

        typ    = max(edge.psi, key=edge.psi.get)
        psi    = edge.psi[typ]
        length = edge.length
        if edge.mult: length *= edge.mult

        if typ in edge.sets and not edge.io_set: edge.set = edge.sets[typ]

        deratables = [i for i in edge.surfaces if i in surfaces and surfaces[i].deratable]
        apertures  = [i for i in edge.surfaces if i in holes]

        if len(apertures) > 1: continue

        if len(deratables) > 1 and apertures:
            dads = [i for i in deratables if own.get(apertures[0]) == i]
            if dads: deratables = dads

        if not deratables: continue

        r = sum(surfaces[i].r for i in deratables if surfaces[i].r)

        for i in deratables:
            ratio = 0
            if r > 0.001 and surfaces[i].r: ratio = surfaces[i].r / r

            surfaces[i].edges[id] = Bridge(psi=psi * ratio,
                                           type=typ,
                                           length=length,
                                           ratio=ratio)

    for surface in surfaces.values():
        if not surface.edges: continue

        surface.heatloss = sum(b.psi * b.length for b in surface.edges.values())

    return True


def points(surfaces={}, ipt={}, dg=None) -> bool:
    """Adds point thermal bridge heat loss (KHI x count) to deratable surfaces,
    as listed in an override document (under surfaces).
    """
    mth = "tbd.points"
    dg  = _dg(dg)

    if not isinstance(surfaces, dict):
        return dg.mismatch("surfaces", surfaces, dict, mth, CN.DBG, False)

    if not isinstance(ipt, dict) or "khi" not in ipt:
        return dg.hashkey("ipt", ipt, "khi", mth, CN.DBG, False)

    khi = ipt["khi"]

    for s in surfaces.values(): s.pts = {}

    for entry in ipt.get("io", {}).get("surfaces", []):
        if entry.get("id") not in surfaces: continue

        s = surfaces[entry["id"]]
        if not s.deratable: continue

        for k in entry.get("khis", []):
            if k["id"] not in khi.point: continue
            if khi.point[k["id"]] < 0.001: continue

            val = khi.point[k["id"]]
            s.heatloss = (s.heatloss or 0) + val * k["count"]

            if k["id"] in s.pts:
                s.pts[k["id"]]["n"] += k["count"]
            else:
                s.pts[k["id"]] = dict(val=val, n=k["count"])

    return True


def derate(id="", s=None, lc=None, dg=None):
    """Thermally derates the insulating layer of a (cloned) construction.

    Args:
        id (str): surface identifier.
        s (Surface): TBD surface record (heatloss, net, ltype, index & r).
        lc (openstudio.model.LayeredConstruction): a layered construction.
        dg (Diagnostics): run log.

    Returns:
        openstudio.model.OpaqueMaterial: derated (cloned) material.
        None: If invalid input (see logs).
    """
    mth = "tbd.derate"
    cl  = openstudio.model.LayeredConstruction
    dg  = _dg(dg)
    id  = oslg.trim(id)

    if not id: return dg.mismatch("id", id, str, mth)
    if not isinstance(s, Surface): return dg.mismatch("%s surface" % id, s, Surface, mth)
    if not isinstance(lc, cl): return dg.mismatch("%s construction" % id, lc, cl, mth)

    if s.heatloss is None or abs(s.heatloss) < 0.001:
        return dg.zero("%s heatloss" % id, mth, CN.WRN)

    for k in ("net", "r"):
        v = getattr(s, k)
        tag = "%s %s" % (id, k)

        if v is None: return dg.invalid(tag, mth, 2, CN.ERR)
        if v < 0: return dg.negative(tag, mth, CN.ERR)
        if abs(v) < 0.001: return dg.zero(tag, mth, CN.WRN)

    if s.index is None or s.index < 0: return dg.invalid("%s index" % id, mth, 2, CN.ERR)
    if not isinstance(s.ltype, Layer): return dg.invalid("%s ltype" % id, mth, 2, CN.ERR)

    if " tbd" in lc.nameString().lower():
        dg.log(CN.WRN, "Won't derate '%s': tagged as derated (%s)" % (id, mth))
        return None

    model = lc.model()
    loss  = 0
    de_u  = 1 / s.r + s.heatloss / s.net
    de_r  = 1 / de_u

    if s.ltype == Layer.MASSLESS:
        m = lc.getLayer(s.index).to_MasslessOpaqueMaterial()
        if not m: return dg.invalid("%s massless layer?" % id, mth, 0)

        m = m.get().clone(model).to_MasslessOpaqueMaterial().get()
        m.setName("%s m tbd" % id)

        if de_r < 0.001:
            de_r = 0.001
            loss = (de_u - 1 / de_r) * s.net

        m.setThermalResistance(de_r)
    else:
        m = lc.getLayer(s.index).to_StandardOpaqueMaterial()
        if not m: return dg.invalid("%s standard layer?" % id, mth, 0)

        m = m.get().clone(model).to_StandardOpaqueMaterial().get()
        m.setName("%s m tbd" % id)
        k = m.thermalConductivity()

        if de_r > 0.001:
            d = de_r * k

            if d < 0.003:
                d = 0.003
                k = d / de_r

                if k > 3:
                    k    = 3
                    loss = (de_u - k / d) * s.net
        else:
            d = 0.001 * k

            if d < 0.003:
                d = 0.003
                k = d / 0.001

            loss = (de_u - k / d) * s.net

        m.setThickness(d)
        m.setThermalConductivity(k)

    if loss > CN.TOL:
        s.r_heatloss = loss
        msg = "Won't assign %.3f W/K to '%s': too conductive (%s)" % (loss, id, mth)
        dg.log(CN.WRN, msg)

    return m


def constructions(model=None, surfaces={}, dg=None) -> bool:
    """Substitutes the constructions of derated surfaces with unique clones
    ("<id> c tbd"), holding derated insulating materials ("<id> m tbd").
    Derating also applies to adjacent surfaces, unless their construction is
    defaulted. Derated surfaces hold their % RSi change ("ratio"), while all
    deratable surfaces hold their un-derated U-factor ("u").

    Args:
        model (openstudio.model.Model): a model.
        surfaces (dict): TBD Surface records, keyed by id.
        dg (Diagnostics): run log.

    Returns:
        bool: Whether successful (False if invalid input - see logs).
    """
    mth = "tbd.constructions"
    cl  = openstudio.model.Model
    dg  = _dg(dg)

    if not isinstance(model, cl):
        return dg.mismatch("model", model, cl, mth, CN.DBG, False)

    if not isinstance(surfaces, dict):
        return dg.mismatch("surfaces", surfaces, dict, mth, CN.DBG, False)

    for id, surface in surfaces.items():
        if surface.construction is None or surface.index is None: continue
        if surface.r is None or not surface.edges: continue
        if surface.heatloss is None or abs(surface.heatloss) <= CN.TOL: continue

        s = model.getSurfaceByName(id)
        if not s: continue

        s = s.get()
        current = surface.construction
        c = current.clone(model).to_LayeredConstruction().get()
        m = derate(id, surface, c, dg)

        if m is None:
            c.remove()
            continue

        c.setLayer(surface.index, m)
        c.setName("%s c tbd" % id)
        current_r = rsi(current, s.filmResistance(), 0.0, dg)
        s.setConstruction(c)

        if surface.adjacent and s.adjacentSurface():
            adjacent = s.adjacentSurface().get()
            nom      = adjacent.nameString()

            if not adjacent.isConstructionDefaulted() and nom in surfaces:
                other = surfaces[nom]

                if other.construction is not None and other.index is not None:
                    cc = other.construction.clone(model).to_LayeredConstruction().get()
                    cc.setLayer(other.index, m)
                    cc.setName("%s c tbd" % nom)
                    adjacent.setConstruction(cc)

        updated_r = rsi(c, s.filmResistance(), 0.0, dg)
        ratio     = -(current_r - updated_r) * 100 / current_r

        if abs(ratio) > CN.TOL: surface.ratio = ratio
        surface.u = 1 / current_r

    for id, surface in surfaces.items():
        if not surface.deratable or surface.construction is None: continue
        if surface.u is not None: continue

        s = model.getSurfaceByName(id)

        if not s:
            dg.log(CN.ERR, "Skipping missing surface '%s' (%s)" % (id, mth))
            continue

        r = rsi(surface.construction, s.get().filmResistance(), 0.0, dg)
        if r > 0: surface.u = 1 / r

    return True
