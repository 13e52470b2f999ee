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

from src.tbd.geo import CN, _dg, matches
from src.tbd.records import Kind, Boundary, Opening, Link
from src.tbd.angles import ZENITH, concave, convex
from src.tbd.envelope import owners
from src.tbd.inputs import GROUPS


def _variant(typ="", s1=None, s2=None, dg=None) -> str:
    """Returns a PSI type suffixed with "concave" or "convex", based on the
    angle between 2 edge-linked surfaces (unchanged if flat).
    """
    if concave(s1, s2, dg): return typ + "concave"
    if convex(s1, s2, dg):  return typ + "convex"

    return typ


def _other(deratables=[], id=""):
    """Returns the other deratable surface of an edge (or 'id' if single)."""
    if len(deratables) == 1: return id
    if deratables[0] == id:  return deratables[-1]

    return deratables[0]


def _gardian(surfaces={}, deratables=[], id="", i=""):
    """Returns the surface holding subsurface 'i' (its gardian) and the
    surface to target for concave/convex tests. In most cases, subsurface
    edges delineate the rough opening of the gardian. Door sills, corner
    windows or subsurface heads aligned with plenum floors are instances
    where a subsurface edge links 2 deratable surfaces.
    """
    if len(deratables) == 1: return id, id

    other = _other(deratables, id)

    if i in surfaces[id].openings(): return id, other

    return other, id


class _Edges:
    """Edge classification context: TBD surfaces, subsurface holes, shades &
    PSI library, along with the building PSI set (and shorthands).
    """

    def __init__(self, surfaces={}, holes={}, shades={}, ipt={}, argh={}, dg=None):
        self.surfaces = surfaces
        self.holes    = holes
        self.shades   = shades
        self.io       = ipt["io"]
        self.psi      = ipt["psi"]
        self.argh     = argh
        self.dg       = dg
        self.bdg      = self.io["building"]["psi"]
        self.val      = self.psi.shorthands(self.bdg)["val"]
        self.own      = owners(surfaces)

    def kind(self, id=""):
        if id not in self.surfaces: return None

        return self.surfaces[id].kind

    def opening(self, edge=None, deratables=[], id="", tag="") -> tuple:
        """Returns the first subsurface linked to an edge, its link & the
        link of the targeted deratable surface. None if unmatched.
        """
        for i in edge.surfaces:
            if i in deratables: continue
            if i not in self.holes: continue

            gardian, target = _gardian(self.surfaces, deratables, id, i)
            subs = self.surfaces[gardian].openings()

            if i not in subs:
                self.dg.log(CN.ERR, "%s: orphaned subsurface %s (tbd.classify)" % (tag, i))
                continue

            return subs[i], edge.surfaces[i], edge.surfaces[target]

        return None

    def fenestration(self, edge=None, deratables=[], id=""):
        """Returns a head, sill or jamb PSI type (or door/skylight variant)."""
        found = self.opening(edge, deratables, id, "Fenestration")
        if found is None: return None

        sub, s2, s1 = found

        if s2.normal is None or s2.polar is None:
            return self.dg.invalid("%s polar" % sub.id, "tbd.classify", 0, CN.DBG, None)

        prefix = "skylight"

        if sub.kind == Opening.WINDOW: prefix = ""
        if sub.kind == Opening.DOOR:   prefix = "" if sub.glazed else "door"

        if abs(abs(s2.normal.dot(ZENITH)) - 1) < CN.TOL:
            typ = "jamb"
        elif edge.horizontal:
            typ = "head" if s2.polar.dot(ZENITH) < 0 else "sill"
        else:
            typ = "jamb"

        return _variant(prefix + typ, s1, s2, self.dg)

    def cascade(self, edge=None, deratables=[]) -> dict:
        """Labels an edge based on the combination (and geometric relationship)
        of its linked surfaces. Once labelled, a category (e.g. corner) is not
        revisited for subsequent deratable surfaces of the same edge.
        """
        surfs = self.surfaces
        links = edge.surfaces
        val   = self.val
        dg    = self.dg
        done  = set()
        psi   = {}

        def label(cat="", typ=""):
            psi[typ] = val[typ]
            done.add(cat)

        for id in deratables:
            kind = surfs[id].kind

            # Head, sill or jamb: 1x subsurface.
            if "fenestration" not in done:
                typ = self.fenestration(edge, deratables, id)
                if typ: label("fenestration", typ)

            # Spandrel: 1x deratable spandrel wall & 1x deratable non-spandrel wall.
            if "spandrel" not in done and len(deratables) == 2:
                if kind == Kind.WALL and surfs[id].spandrel:
                    for i in deratables:
                        if i == id: continue
                        if self.kind(i) != Kind.WALL: continue
                        if surfs[i].spandrel: continue

                        label("spandrel", _variant("spandrel", links[id], links[i], dg))
                        break

            # Corner: 2x deratable walls.
            if "corner" not in done and len(deratables) == 2 and kind == Kind.WALL:
                for i in deratables:
                    if i == id: continue
                    if self.kind(i) != Kind.WALL: continue

                    typ = _variant("corner", links[id], links[i], dg)
                    done.add("corner")
                    if typ != "corner": label("corner", typ)
                    break

            # Ceiling: 1x CONDITIONED floor of an unoccupied space (e.g.
            # plenum), adjacent to a CONDITIONED ceiling of an occupied space.
            if "ceiling" not in done and kind != Kind.FLOOR:
                for i in links:
                    if i == id: continue
                    if self.kind(i) != Kind.FLOOR: continue

                    floor = surfs[i]
                    if floor.ground or not floor.conditioned or floor.occupied: continue

                    ceiling = surfs.get(floor.adjacent)
                    if ceiling is None or ceiling.kind != Kind.CEILING: continue
                    if not ceiling.conditioned or not ceiling.occupied: continue

                    other = _other(deratables, id)
                    label("ceiling", _variant("ceiling", links[id], links[other], dg))
                    break

            # Parapet (or roof): 1x deratable ceiling & 1x deratable wall.
            if "parapet" not in done and len(deratables) == 2 and kind == Kind.CEILING:
                for i in deratables:
                    if i == id: continue
                    if self.kind(i) != Kind.WALL: continue

                    typ = "parapet" if self.argh.get("parapet", True) else "roof"
                    label("parapet", _variant(typ, links[id], links[i], dg))
                    break

            # Party: 1x (only) deratable surface & 1x OtherSideCoefficients surface.
            if "party" not in done and len(deratables) == 1:
                for i in links:
                    if i == id: continue
                    if i not in surfs: continue
                    if surfs[i].boundary != Boundary.OTHER: continue

                    label("party", _variant("party", links[id], links[i], dg))
                    break

            # Grade: 1x (only) deratable surface & 1x ground-facing surface.
            if "grade" not in done and len(deratables) == 1:
                for i in links:
                    if i == id: continue
                    if i not in surfs: continue
                    if not surfs[i].ground: continue

                    label("grade", _variant("grade", links[id], links[i], dg))
                    break

            # Rimjoist: 1x CONDITIONED floor. Balcony if also linked to a shade,
            # balconysill (or balconydoorsill) if also linked to a window (or
            # an opaque door).
            if "ceiling" in done or "rimjoist" in done: continue
            if kind == Kind.FLOOR: continue

            typ = "rimjoist"

            if any(i != id and i in self.shades for i in links):
                typ   = "balcony"
                found = self.opening(edge, deratables, id, "Balcony sill")

                if found:
                    sub = found[0]

                    if sub.kind == Opening.WINDOW or sub.glazed:
                        typ = "balconysill"
                    elif sub.kind == Opening.DOOR:
                        typ = "balconydoorsill"

            for i in links:
                if i == id: continue
                if self.kind(i) != Kind.FLOOR: continue
                if surfs[i].ground or not surfs[i].conditioned: continue

                other = _other(deratables, id)
                label("rimjoist", _variant(typ, links[id], links[other], dg))
                break

        return psi

    def parapets(self, edge=None, parapet=True):
        """Swaps an edge's roof type for a parapet type (or vice versa)."""
        frm  = "roof" if parapet else "parapet"
        to   = "parapet" if parapet else "roof"
        olds = [typ for typ in edge.psi if typ.startswith(frm)]
        news = [typ for typ in edge.psi if typ.startswith(to)]

        if not olds or news: return

        typ = to + olds[0][len(frm):]

        for old in olds: del edge.psi[old]

        edge.psi[typ] = self.val[typ]

    def linked(self, edge=None, key="", id="") -> bool:
        """Whether an edge links a surface of a story, space type or space."""
        attr = GROUPS[key]

        for i in edge.surfaces:
            if i not in self.surfaces: continue
            if self.surfaces[i].names()[attr] == id: return True

        return False

    def retain(self, edge=None, sets=[]):
        """Retains the most conductive PSI value per edge PSI type, among
        PSI sets targeting the edge.
        """
        for typ in list(edge.psi):
            vals = {}

            for st in sets:
                safer = self.psi.safe(st, typ)
                if safer: vals[st] = self.psi.shorthands(st)["val"][safer]

            if not vals: continue

            st = max(vals, key=vals.get)
            edge.psi[typ]  = vals[st]
            edge.sets[typ] = st

    def overrides(self, edges={}):
        """Applies override document layers over building PSI values:
        subsurface U-factors, parapet/roof swaps, then story, space type,
        space, surface & edge PSI sets (increasing precedence). For each
        layer, PSI values are first gathered (per edge), then applied.
        """
        io  = self.io
        psi = self.psi

        for sub in io.get("subsurfaces", []):
            id = sub["id"]
            if id not in self.own: continue

            self.surfaces[self.own[id]].openings()[id].u = sub["usi"]

        for key in GROUPS:
            for group in io.get(key, []):
                if "parapet" not in group: continue

                for edge in edges.values():
                    if not edge.psi or edge.io_type: continue
                    if not self.linked(edge, key, group["id"]): continue

                    self.parapets(edge, group["parapet"])

        for surface in io.get("surfaces", []):
            if "parapet" not in surface: continue

            for edge in edges.values():
                if not edge.psi or edge.io_type: continue
                if surface["id"] not in edge.surfaces: continue

                self.parapets(edge, surface["parapet"])

        for key in GROUPS:
            deltas = {}

            for group in io.get(key, []):
                st = group.get("psi")
                if st is None or st not in psi.set: continue

                for id, edge in edges.items():
                    if not edge.psi or edge.io_set: continue
                    if not self.linked(edge, key, group["id"]): continue

                    typs = [edge.io_type] if edge.io_type else list(edge.psi)
                    vals = {}

                    for typ in typs:
                        safer = psi.safe(st, typ)
                        if safer: vals[typ] = psi.shorthands(st)["val"][safer]

                    if vals: deltas.setdefault(id, {})[st] = vals

            for id, sets in deltas.items():
                edges[id].groups[key] = sets
                self.retain(edges[id], list(sets))

        deltas = {}

        for surface in io.get("surfaces", []):
            st = surface.get("psi")
            if st is None or st not in psi.set: continue

            for id, edge in edges.items():
                if not edge.psi or edge.io_set: continue
                if surface["id"] not in edge.surfaces: continue

                typs = [edge.io_type] if edge.io_type else list(edge.psi)
                vals = {}

                for typ in typs:
                    safer = psi.safe(st, typ)
                    if safer: vals[typ] = psi.shorthands(st)["val"][safer]

                if vals: deltas.setdefault(id, {})[surface["id"]] = (st, vals)

        for id, links in deltas.items():
            edge = edges[id]

            for i, (st, vals) in links.items():
                edge.surfaces[i].psi = vals
                edge.surfaces[i].set = st

            self.retain(edge, [st for st, _ in links.values()])

        for edge in edges.values():
            if not edge.psi or not edge.io_type: continue

            st = edge.io_set or edge.sets.get(edge.io_type)
            if st not in psi.set: continue

            safer = psi.safe(st, edge.io_type)
            if not safer: continue

            if edge.io_set:
                edge.psi = {}
                edge.set = edge.io_set
            else:
                edge.sets[edge.io_type] = st

            edge.psi[edge.io_type] = psi.shorthands(st)["val"][safer]

    def hinged(self, edge=None) -> int:
        """Returns the number of (hinged) subsurfaces linked to an edge, or 0
        if linked to an unhinged subsurface.
        """
        nb = 0

        for i in edge.surfaces:
            if i not in self.holes: continue
            if self.holes[i].unhinged: return 0

            nb += 1

        return nb

    def multipliers(self, edges={}):
        """Retains the largest multiplier (> 1) of subsurfaces linked to head,
        sill or jamb edges.
        """
        for edge in edges.values():
            if not any(k in typ for typ in edge.psi for k in ("head", "sill", "jamb")):
                continue

            for i in edge.surfaces:
                if i not in self.own: continue

                sub = self.surfaces[self.own[i]].openings()[i]
                if sub.mult <= 1: continue

                if edge.mult is None or sub.mult > edge.mult: edge.mult = sub.mult

    def proximity(self, edges={}):
        """Resets edges of subsurfaces as (mild) transitions, if in close
        proximity to edges of another subsurface, e.g. shared mullions. Edges
        set in an override document and unhinged subsurface edges are ignored.
        """
        tol    = self.argh.get("sub_tol", CN.TOL)
        resets = []

        for id, edge in edges.items():
            if edge.io_type or not edge.psi: continue

            nb    = self.hinged(edge)
            match = nb > 1

            if nb == 1:
                e1 = dict(v0=edge.v0, v1=edge.v1)

                for nom, e in edges.items():
                    if nom == id: continue
                    if e.io_type or not e.psi: continue
                    if self.hinged(e) != 1: continue

                    if matches(e1, dict(v0=e.v0, v1=e.v1), tol, self.dg):
                        match = True
                        break

            if match: resets.append(id)

        for id in resets:
            edges[id].psi = dict(transition=0.0)
            edges[id].set = self.bdg


def classify(surfaces={}, holes={}, shades={}, edges={}, ipt={}, argh={}, dg=None) -> bool:
    """Assigns thermal bridge types (and PSI-factors) to edges linked to at
    least one deratable surface. Edges tagged in an override document retain
    their (safe) type. Otherwise, edges are labelled through a cascade of
    rules: fenestration (head, sill, jamb), spandrel, corner, ceiling,
    parapet (or roof), party, grade, then rimjoist (or balcony). Edges that
    match none of the above are labelled as (mild) transitions. Override
    document PSI sets are applied last. Classification starts by clearing
    previous assignments: reruns yield identical results.

    Args:
        surfaces (dict): TBD Surface records, keyed by id.
        holes (dict): subsurface hole wires, keyed by subsurface id.
        shades (dict): TBD Shade records, keyed by id.
        edges (dict): TBD Edge records (angles resolved), keyed by id.
        ipt (dict): processed override document ("io", "psi", "khi").
        argh (dict): processing options ("parapet", "sub_tol").
        dg (Diagnostics): run log.

    Returns:
        bool: Whether successful (False if invalid input - see logs).
    """
    mth = "tbd.classify"
    dg  = _dg(dg)

    for id, arg in dict(surfaces=surfaces, holes=holes, shades=shades,
                        edges=edges, ipt=ipt, argh=argh).items():
        if not isinstance(arg, dict):
            return dg.mismatch(id, arg, dict, mth, CN.DBG, False)

    for k in ("io", "psi"):
        if k not in ipt: return dg.hashkey("ipt", ipt, k, mth, CN.DBG, False)

    if "psi" not in ipt["io"].get("building", {}):
        return dg.hashkey("building", ipt["io"], "building", mth, CN.DBG, False)

    ctx = _Edges(surfaces, holes, shades, ipt, argh, dg)
    psi = ctx.psi
    bdg = ctx.bdg

    for edge in edges.values():
        edge.psi    = {}
        edge.set    = None
        edge.sets   = {}
        edge.groups = {}
        edge.mult   = None

        for id in [i for i, s in edge.surfaces.items() if s.wire is None]:
            del edge.surfaces[id]

        for s in edge.surfaces.values():
            s.psi = {}
            s.set = None

    for edge in edges.values():
        deratables = [i for i in edge.surfaces if i in surfaces and surfaces[i].deratable]
        if not deratables: continue

        if edge.io_type:
            safer = psi.safe(bdg, edge.io_type)
            if not safer: continue

            edge.psi = {edge.io_type: ctx.val[safer]}
            edge.set = bdg
            edge.sets[edge.io_type] = bdg

            if edge.io_set in psi.set and psi.safe(edge.io_set, edge.io_type):
                edge.set = edge.io_set

            continue

        edge.psi = ctx.cascade(edge, deratables)
        if edge.psi: edge.set = bdg

    # Transitions between deratable surfaces, around edges not yet labelled.
    for edge in edges.values():
        if edge.psi: continue
        if not any(i in surfaces and surfaces[i].deratable for i in edge.surfaces):
            continue

        edge.psi = dict(transition=0.0)
        edge.set = bdg

    # Unhinged subsurfaces (e.g. tubular daylighting device domes) don't share
    # edges with their parent surface. Link unhinged edges to parents.
    for edge in edges.values():
        if edge.psi or len(edge.surfaces) != 1: continue

        id = next(iter(edge.surfaces))
        if id not in holes or not holes[id].unhinged: continue
        if id not in ctx.own: continue

        parent = ctx.own[id]
        if not surfaces[parent].conditioned: continue

        edge.surfaces[parent] = Link()
        edge.psi = dict(jamb=ctx.val["jamb"])
        edge.set = bdg

    ctx.overrides(edges)
    ctx.multipliers(edges)
    ctx.proximity(edges)

    return True
