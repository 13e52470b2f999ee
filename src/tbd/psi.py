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

from oslg import oslg

from src.tbd.geo import CN, _dg

# PSI types holding concave & convex variants.
VARIANTS = ("rimjoist", "parapet", "roof", "ceiling",
            "head", "sill", "jamb",
            "doorhead", "doorsill", "doorjamb",
            "skylighthead", "skylightsill", "skylightjamb",
            "spandrel", "corner",
            "balcony", "balconysill", "balconydoorsill",
            "party", "grade")

# PSI types without variants.
SINGLES = ("fenestration", "door", "skylight", "joint", "transition")

TYPES = [typ + sfx for typ in VARIANTS for sfx in ("", "concave", "convex")]
TYPES = list(SINGLES) + TYPES

# Inheritance: PSI types (increasing precedence) a missing type falls back to.
CHAINS = dict(head           =["fenestration", "head"],
              sill           =["fenestration", "sill"],
              jamb           =["fenestration", "jamb"],
              door           =["fenestration", "door"],
              doorhead       =["fenestration", "door", "doorhead"],
              doorsill       =["fenestration", "door", "doorsill"],
              doorjamb       =["fenestration", "door", "doorjamb"],
              skylight       =["fenestration", "skylight"],
              skylighthead   =["fenestration", "skylight", "skylighthead"],
              skylightsill   =["fenestration", "skylight", "skylightsill"],
              skylightjamb   =["fenestration", "skylight", "skylightjamb"],
              parapet        =["roof", "parapet"],
              roof           =["parapet", "roof"],
              balconysill    =["fenestration", "sill", "balcony", "balconysill"],
              balconydoorsill=["fenestration", "sill", "balcony", "balconysill",
                               "balconydoorsill"])

# Built-in PSI sets (W/K per linear meter). BETBG sets are based on INTERIOR
# dimensioning. 90.1.22 sets: ASHRAE 90.1 2022 (A10) default/unmitigated.
_COLUMNS = ("rimjoist", "parapet", "roof", "ceiling", "fenestration", "door",
            "skylight", "spandrel", "corner", "balcony", "balconysill",
            "balconydoorsill", "party", "grade", "joint", "transition")

_BUILTIN = {
    "poor (BETBG)":
        (1.000, 0.800, 0.800, 0.0, 0.500, 0.500, 0.500, 0.155, 0.850,
         1.000, 1.000, 1.000, 0.850, 0.850, 0.300, 0.0),
    "regular (BETBG)":
        (0.500, 0.450, 0.450, 0.0, 0.350, 0.350, 0.350, 0.155, 0.450,
         0.500, 0.500, 0.500, 0.450, 0.450, 0.200, 0.0),
    "efficient (BETBG)":
        (0.200, 0.200, 0.200, 0.0, 0.199999, 0.199999, 0.199999, 0.155, 0.200,
         0.200, 0.200, 0.200, 0.200, 0.200, 0.100, 0.0),
    "spandrel (BETBG)":
        (0.615, 1.000, 1.000, 0.0, 0.000, 0.000, 0.350, 0.155, 0.425,
         1.110, 1.110, 1.110, 0.990, 0.880, 0.500, 0.0),
    "spandrel HP (BETBG)":
        (0.170, 0.660, 0.660, 0.0, 0.000, 0.000, 0.350, 0.155, 0.200,
         0.400, 0.400, 0.400, 0.500, 0.880, 0.140, 0.0),
    "code (Quebec)":
        (0.300, 0.325, 0.325, 0.0, 0.200, 0.200, 0.200, 0.155, 0.300,
         0.500, 0.500, 0.500, 0.450, 0.450, 0.200, 0.0),
    "uncompliant (Quebec)":
        (0.850, 0.800, 0.800, 0.0, 0.500, 0.500, 0.500, 0.155, 0.850,
         1.000, 1.000, 1.000, 0.850, 0.850, 0.500, 0.0),
    "90.1.22|steel.m|default":
        (0.307, 0.260, 0.020, 0.0, 0.194, 0.0, 0.0, 0.000001, 0.000002,
         0.307, 0.307, 0.307, 0.000001, 0.000001, 0.376, 0.0),
    "90.1.22|steel.m|unmitigated":
        (0.842, 0.500, 0.650, 0.0, 0.505, 0.0, 0.0, 0.000001, 0.000002,
         0.842, 1.686, 0.842, 0.000001, 0.000001, 0.554, 0.0),
    "90.1.22|mass.ex|default":
        (0.205, 0.217, 0.150, 0.0, 0.226, 0.0, 0.0, 0.000001, 0.000002,
         0.205, 0.307, 0.205, 0.000001, 0.000001, 0.322, 0.0),
    "90.1.22|mass.ex|unmitigated":
        (0.824, 0.412, 0.750, 0.0, 0.325, 0.0, 0.0, 0.000001, 0.000002,
         0.824, 1.686, 0.824, 0.000001, 0.000001, 0.476, 0.0),
    "90.1.22|mass.in|default":
        (0.495, 0.393, 0.150, 0.0, 0.143, 0.0, 0.0, 0.0, 0.000001,
         0.495, 0.307, 0.495, 0.000001, 0.000001, 0.322, 0.0),
    "90.1.22|mass.in|unmitigated":
        (0.824, 0.884, 0.750, 0.0, 0.543, 0.0, 0.0, 0.0, 0.000001,
         0.824, 1.686, 0.824, 0.000001, 0.000001, 0.476, 0.0),
    "90.1.22|wood.fr|default":
        (0.084, 0.056, 0.020, 0.0, 0.171, 0.0, 0.0, 0.0, 0.000001,
         0.084, 0.171001, 0.084, 0.000001, 0.000001, 0.074, 0.0),
    "90.1.22|wood.fr|unmitigated":
        (0.582, 0.056, 0.150, 0.0, 0.260, 0.0, 0.0, 0.0, 0.000001,
         0.582, 0.582, 0.582, 0.000001, 0.000001, 0.322, 0.0),
    "(non thermal bridging)":
        (0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0,
         0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0),
}

# Built-in KHI points (W/K).
_POINTS = {
    "poor (BETBG)"               : 0.900, # detail 5.7.2 BETBG
    "regular (BETBG)"            : 0.500, # detail 5.7.4 BETBG
    "efficient (BETBG)"          : 0.150, # detail 5.7.3 BETBG
    "code (Quebec)"              : 0.500, # art. 3.3.1.3. NECB-QC
    "uncompliant (Quebec)"       : 1.000, # NECB-QC Guide
    "90.1.22|steel.m|default"    : 0.480,
    "90.1.22|steel.m|unmitigated": 0.920,
    "90.1.22|mass.ex|default"    : 0.330,
    "90.1.22|mass.ex|unmitigated": 0.460,
    "90.1.22|mass.in|default"    : 0.330,
    "90.1.22|mass.in|unmitigated": 0.460,
    "90.1.22|wood.fr|default"    : 0.040,
    "90.1.22|wood.fr|unmitigated": 0.330,
    "(non thermal bridging)"     : 0.000,
}


def variants(typ="") -> list:
    """Returns a PSI type and its concave/convex variants (if any)."""
    if typ in VARIANTS: return [typ, typ + "concave", typ + "convex"]

    return [typ]


class KHI:
    """Library of point thermal bridges (e.g. columns). Each entry requires a
    unique identifier and a conductance, in W/K.
    """

    def __init__(self, dg=None):
        self.dg    = _dg(dg)
        self.point = dict(_POINTS)

    def append(self, k={}) -> bool:
        """Appends a new KHI entry.

        Args:
            k (dict): new KHI entry, "id" (str) & "point" (W/K).

        Returns:
            bool: Whether KHI entry is successfully appended (see logs).
        """
        mth = "tbd.KHI.append"
        dg  = self.dg

        if not isinstance(k, dict):
            return dg.mismatch("KHI", k, dict, mth, CN.DBG, False)

        if "id"    not in k: return dg.hashkey("KHI id", k, "id", mth, CN.DBG, False)
        if "point" not in k: return dg.hashkey("KHI point", k, "point", mth, CN.DBG, False)

        id = oslg.trim(k["id"])

        if not id: return dg.mismatch("KHI id", k["id"], str, mth, CN.ERR, False)

        try:
            point = float(k["point"])
        except (TypeError, ValueError):
            return dg.mismatch("KHI point", k["point"], float, mth, CN.ERR, False)

        if id in self.point:
            dg.log(CN.ERR, "Skipping '%s': existing KHI entry (%s)" % (id, mth))
            return False

        self.point[id] = point

        return True


class PSI:
    """Library of linear thermal bridges (e.g. corners, balconies). Each entry
    requires a unique identifier (e.g. "poor (BETBG)") and a (partial or
    complete) set of PSI-factors, in W/K per linear meter. Missing PSI types
    are resolved through inheritance (see 'gen').
    """

    def __init__(self, dg=None):
        self.dg  = _dg(dg)
        self.set = {} # PSI sets, as provided
        self.has = {} # PSI set id: {PSI type: bool}
        self.val = {} # PSI set id: {PSI type: PSI-factor}

        for id, vals in _BUILTIN.items():
            self.set[id] = dict(zip(_COLUMNS, vals))
            self.gen(id)

    def gen(self, id="") -> bool:
        """Generates PSI set shorthands: whether the set holds each PSI type,
        and each PSI type's (possibly inherited) PSI-factor. Inherited values
        cascade through CHAINS, then from base types to concave/convex
        variants. Unresolved types default to 0. Parapet and roof values
        default to the max of their variants, unless provided.

        Args:
            id (str): PSI set identifier.

        Returns:
            bool: Whether successful (see logs).
        """
        mth = "tbd.PSI.gen"

        if id not in self.set:
            return self.dg.hashkey(id, self.set, id, mth, CN.ERR, False)

        st  = self.set[id]
        has = {typ: typ in st for typ in TYPES}
        val = {typ: 0.0 for typ in TYPES}

        for typ in list(SINGLES) + list(VARIANTS):
            for src in CHAINS.get(typ, [typ]):
                if has.get(src):
                    for v in variants(typ): val[v] = st[src]

                if typ not in VARIANTS: continue

                for sfx in ("concave", "convex"):
                    if has.get(src + sfx): val[typ + sfx] = st[src + sfx]

        for typ in ("parapet", "roof"):
            if not has[typ]:
                val[typ] = max(val[typ + "concave"], val[typ + "convex"])

        self.has[id] = has
        self.val[id] = val

        return True

    def append(self, set={}) -> bool:
        """Appends a new PSI set. Joint, transition & ceiling PSI-factors
        default to 0 if missing.

        Args:
            set (dict): new PSI set: "id" (str) & any PSI type: PSI-factor.

        Returns:
            bool: Whether PSI set is successfully appended (see logs).
        """
        mth = "tbd.PSI.append"
        dg  = self.dg
        s   = {}

        if not isinstance(set, dict):
            return dg.mismatch("set", set, dict, mth, CN.DBG, False)

        if "id" not in set: return dg.hashkey("set id", set, "id", mth, CN.DBG, False)

        id = oslg.trim(set["id"])

        if not id: return dg.mismatch("set ID", set["id"], str, mth, CN.ERR, False)

        if id in self.set:
            dg.log(CN.ERR, "'%s': existing PSI set (%s)" % (id, mth))
            return False

        for typ in TYPES:
            if typ not in set: continue

            try:
                s[typ] = float(set[typ])
            except (TypeError, ValueError):
                return dg.mismatch("%s %s" % (id, typ), set[typ], float, mth, CN.ERR, False)

        for typ in ("joint", "transition", "ceiling"):
            if typ not in s: s[typ] = 0.0

        self.set[id] = s

        return self.gen(id)

    def shorthands(self, id="") -> dict:
        """Returns PSI set shorthands: "has" (PSI type: bool) and "val" (PSI
        type: PSI-factor). Both are empty if the set is unknown (see logs).
        """
        mth = "tbd.PSI.shorthands"
        sh  = dict(has={}, val={})
        id  = oslg.trim(id)

        if not id: return self.dg.mismatch("set ID", id, str, mth, CN.ERR, sh)
        if id not in self.set: return self.dg.hashkey(id, self.set, id, mth, CN.ERR, sh)

        sh["has"] = self.has[id]
        sh["val"] = self.val[id]

        return sh

    def complete(self, id="") -> bool:
        """Validates whether a PSI set holds a complete list of PSI types:
        head, sill & jamb (or fenestration), concave & convex corners (or
        corner), a parapet (or roof) pair (or parapet, or roof), as well as
        party, grade, balcony & rimjoist.

        Args:
            id (str): PSI set identifier.

        Returns:
            bool: Whether PSI set is known and complete (see logs).
        """
        mth = "tbd.PSI.complete"
        id  = oslg.trim(id)

        if not id: return self.dg.mismatch("set ID", id, str, mth, CN.ERR, False)
        if id not in self.set: return self.dg.hashkey(id, self.set, id, mth, CN.ERR, False)

        has = self.has[id]

        if not has["fenestration"]:
            if not (has["head"] and has["sill"] and has["jamb"]): return False

        if not has["corner"]:
            if not (has["cornerconcave"] and has["cornerconvex"]): return False

        if not (has["parapet"] or has["roof"]):
            parapets = has["parapetconcave"] and has["parapetconvex"]
            roofs    = has["roofconcave"]    and has["roofconvex"]

            if not (parapets or roofs): return False

        for typ in ("party", "grade", "balcony", "rimjoist"):
            if not has[typ]: return False

        return True

    def safe(self, id="", typ=None):
        """Returns a safe PSI type held in a PSI set, based on inheritance:
        concave/convex variants fall back to their base type; head, sill &
        jamb fall back to fenestration; door* and skylight* types fall back to
        door and skylight, then to fenestration.

        Args:
            id (str): PSI set identifier.
            typ (str): PSI type (e.g. "rimjoistconcave").

        Returns:
            str: safe PSI type (None if unresolved or invalid - see logs).
        """
        mth = "tbd.PSI.safe"
        id  = oslg.trim(id)

        if not id: return self.dg.mismatch("set ID", id, str, mth)
        if not isinstance(typ, str): return self.dg.mismatch("type", typ, str, mth)
        if id not in self.set: return self.dg.hashkey(id, self.set, id, mth, CN.ERR)

        has   = self.has[id]
        safer = typ

        if not has.get(safer):
            for sfx in ("concave", "convex"):
                if safer.endswith(sfx): safer = safer[:-len(sfx)]

        if not has.get(safer):
            if safer in ("head", "sill", "jamb"):
                safer = "fenestration"
            elif safer.startswith("door") and safer != "door":
                safer = "door"
            elif safer.startswith("skylight") and safer != "skylight":
                safer = "skylight"

        if not has.get(safer):
            if safer in ("door", "skylight"): safer = "fenestration"

        if has.get(safer): return safer

        return None
