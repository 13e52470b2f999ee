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

import datetime
import json
import os
import openstudio

from src.tbd.geo import CN, _dg, transforms, trueNormal, p3Dv
from src.tbd.records import Kind, Boundary, Shade
from src.tbd.topology import Topology, dads, wires, faces
from src.tbd.angles import polarize
from src.tbd.conditioning import hasHeatingTemperatureSetpoints
from src.tbd.conditioning import hasCoolingTemperatureSetpoints
from src.tbd.envelope import properties
from src.tbd.inputs import inputs
from src.tbd.classify import classify
from src.tbd.derate import apportion, points, constructions

DEFAULT = "poor (BETBG)" # default building PSI set

_COORDS = ("v0x", "v0y", "v0z", "v1x", "v1y", "v1z")

# Output document key order.
_ORDER = ("schema", "description", "log", "psis", "khis", "building",
          "stories", "spacetypes", "spaces", "surfaces", "subsurfaces", "edges")


def _shades(model=None, dg=None) -> dict:
    """Returns TBD Shade records of OpenStudio shading surfaces."""
    mth    = "tbd.process"
    shades = {}

    for s in model.getShadingSurfaces():
        id    = s.nameString()
        group = s.shadingSurfaceGroup()

        if not group:
            dg.log(CN.ERR, "Can't process '%s' transformation (%s)" % (id, mth))
            continue

        group = group.get()
        tr    = transforms(group, dg)

        if tr["t"] is None or tr["r"] is None:
            dg.log(CN.ERR, "Can't process '%s' transformation (%s)" % (id, mth))
            continue

        r = tr["r"]
        if group.space(): r += group.space().get().directionofRelativeNorth()

        n = trueNormal(s, r, dg)

        if n is None:
            dg.log(CN.ERR, "Can't process '%s' true normal (%s)" % (id, mth))
            continue

        pts = list(tr["t"] * p3Dv(s))
        shades[id] = Shade(id=id, points=pts, minz=min(pt.z() for pt in pts), n=n)

    return shades


def _deratable(surfaces={}, dg=None):
    """Flags deratable surfaces: CONDITIONED, not facing ground, facing
    outdoors or an UNCONDITIONED surface, and holding an insulating layer.
    """
    mth = "tbd.process"

    for id, surface in surfaces.items():
        surface.deratable = False

        if not surface.conditioned: continue
        if surface.ground: continue

        if surface.boundary != Boundary.OUTDOORS:
            if surface.adjacent not in surfaces: continue
            if surfaces[surface.adjacent].conditioned: continue

        if surface.index is None:
            dg.log(CN.ERR, "Skipping '%s': insulating layer? (%s)" % (id, mth))
            continue

        surface.deratable = True


def _sorted(surfaces={}, kind=None) -> dict:
    """Returns surfaces of a given kind, sorted by min Z then space name."""
    group = [(id, s) for id, s in surfaces.items() if s.kind == kind]
    group.sort(key=lambda kv: (kv[1].minz, kv[1].space.nameString()))

    return dict(group)


def _edges(edges={}) -> list:
    """Returns classified edges as override document entries, sorted by
    vertex coordinates. Lengths are not scaled by multipliers.
    """
    out = []

    for e in edges.values():
        if not e.psi or not e.set: continue

        ids = [id for id, s in e.surfaces.items() if s.wire is not None]

        out.append(dict(psi=e.set,
                        type=max(e.psi, key=e.psi.get),
                        length=e.length,
                        surfaces=ids,
                        v0x=e.v0.x(), v0y=e.v0.y(), v0z=e.v0.z(),
                        v1x=e.v1.x(), v1y=e.v1.y(), v1z=e.v1.z()))

    out.sort(key=lambda e: tuple(e[k] for k in _COORDS))

    return out


def process(model=None, argh={}, dg=None) -> dict:
    """Derates opaque envelope surfaces of an OpenStudio model, given major
    thermal bridges (e.g. corners, parapets, fenestration perimeters).

    Derated (cloned) constructions are unique to each deratable surface:
    construction names are prefixed with the surface name, and suffixed with
    " tbd" ("<id> c tbd"). TBD will not derate constructions (or rather
    layered materials) already holding " tbd" in their name.

    Args:
        model (openstudio.model.Model): a model.
        argh (dict): processing options (defaults are set in place):
            - option (str): building PSI set, if not in override document
            - io_path (dict or str): override document (or JSON file path)
            - parapet (bool): whether wall/roof edges are parapets
            - sub_tol (float): proximity tolerance between subsurface edges (m)
        dg (Diagnostics): run log (a new one is created if None).

    Returns:
        dict:
        - io (dict): override document, enriched with classified edges
        - surfaces (dict): TBD Surface records, keyed by id
        - edges (dict): TBD Edge records, keyed by id
        - dg (Diagnostics): run log
    """
    mth = "tbd.process"
    dg  = _dg(dg)
    tbd = dict(io=None, surfaces={}, edges={}, dg=dg)
    cl  = openstudio.model.Model

    if not isinstance(model, cl):
        return dg.mismatch("model", model, cl, mth, CN.DBG, tbd)
    if not isinstance(argh, dict):
        return dg.mismatch("argh", argh, dict, mth, CN.DBG, tbd)

    if not argh.get("option"): argh["option"] = DEFAULT
    if "io_path" not in argh: argh["io_path"] = None
    if "parapet" not in argh: argh["parapet"] = True
    if "sub_tol" not in argh: argh["sub_tol"] = CN.TOL

    heated = hasHeatingTemperatureSetpoints(model, dg)
    cooled = hasCoolingTemperatureSetpoints(model, dg)
    argh["setpoints"] = heated or cooled

    surfaces = {}

    for s in sorted(model.getSurfaces(), key=lambda s: s.nameString()):
        surface = properties(model, s, argh, dg)
        if surface: surfaces[s.nameString()] = surface

    tbd["surfaces"] = surfaces

    if not surfaces: return dg.empty("TBD surfaces", mth, CN.ERR, tbd)

    _deratable(surfaces, dg)

    floors   = _sorted(surfaces, Kind.FLOOR)
    ceilings = _sorted(surfaces, Kind.CEILING)
    walls    = _sorted(surfaces, Kind.WALL)
    shades   = _shades(model, dg)

    # Shared topology: holes first, then floors, ceilings, walls & shades.
    topo  = Topology()
    holes = {}
    edges = {}

    for group in (floors, ceilings, walls): holes.update(dads(topo, group, dg))

    dads(topo, shades, dg)
    wires(holes, edges, dg)

    for group in (floors, ceilings, walls, shades): faces(group, edges, dg)

    normals = {id: s.n for id, s in surfaces.items()}
    normals.update({id: w.n for id, w in holes.items()})
    normals.update({id: s.n for id, s in shades.items()})

    polarize(edges, normals, dg)
    tbd["edges"] = edges

    ipt = inputs(surfaces, edges, argh, dg)
    if dg.status() == CN.FTL: return tbd

    classify(surfaces, holes, shades, edges, ipt, argh, dg)
    apportion(surfaces, holes, edges, dg)
    points(surfaces, ipt, dg)
    constructions(model, surfaces, dg)

    io  = ipt["io"]
    out = _edges(edges)

    if out:
        io["edges"] = out
    else:
        io.pop("edges", None)

    tbd["io"] = io

    return tbd


def exit(tbd={}, argh={}) -> bool:
    """Generates a run summary: status, derated surfaces & log messages. The
    summary is appended to the output document (under "log"), which is
    written out as "tbd.out.json" if an output directory is provided.

    Args:
        tbd (dict): process outputs ("io", "surfaces" & "dg").
        argh (dict): options: "out_dir" (str), "write_tbd" (bool, whether
            to keep override document entries), "seed" (str, description).

    Returns:
        bool: Whether TBD processes are successful (i.e. not FATAL).
    """
    if not isinstance(tbd, dict):  tbd  = {}
    if not isinstance(argh, dict): argh = {}

    dg       = _dg(tbd.get("dg"))
    io       = tbd.get("io")
    surfaces = tbd.get("surfaces")
    fatal    = dg.is_fatal()
    state    = dg.msg() if dg.status() else dg.msg(CN.INF)

    if not io or not surfaces:
        state = "Halting all TBD processes"
        if fatal: state = "Halting all TBD processes, FATAL error(s)"

    io  = dict(io) if io else {}
    log = dict(date=datetime.datetime.now().isoformat(), status=state)

    if argh.get("seed") and "description" not in io:
        io["description"] = argh["seed"]

    results = []

    for id, surface in (surfaces or {}).items():
        if fatal: break
        if surface.ratio is None: continue

        results.append("RSi derated by %4.1f%% : %s" % (surface.ratio, id))

    if results: log["results"] = results

    msgs = [dict(level=dg.tag(l["level"]), message=l["message"]) for l in dg.logs()]
    if msgs: log["messages"] = msgs

    io["log"] = log

    if not argh.get("write_tbd"):
        for k in ("psis", "khis", "building", "stories", "spacetypes",
                  "spaces", "surfaces", "subsurfaces", "edges"):
            io.pop(k, None)

    io = {k: io[k] for k in _ORDER if k in io}
    tbd["out"] = io

    if argh.get("out_dir"):
        pth = os.path.join(argh["out_dir"], "tbd.out.json")

        with open(pth, "w") as f:
            json.dump(io, f, indent=2)

    return not fatal
