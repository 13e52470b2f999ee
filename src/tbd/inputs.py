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

import json
import os
import openstudio
from oslg import oslg

from src.tbd.geo import CN, _dg, matches
from src.tbd.psi import PSI, KHI

# Group entry keys, mapped to the surface attributes they target.
GROUPS = dict(stories="story", spacetypes="stype", spaces="space")

_COORDS = ("v0x", "v0y", "v0z", "v1x", "v1y", "v1z")


def _load(pth=None, dg=None):
    """Returns an override document (dict), from a dict or a JSON file path.
    Returns None if unreadable or unparseable (see logs).
    """
    mth = "tbd._load"

    if isinstance(pth, dict): return pth

    if not os.path.isfile(pth) or os.path.getsize(pth) == 0:
        return dg.empty("JSON file", mth, CN.FTL, None)

    try:
        with open(pth, "r") as f:
            io = json.load(f)
    except (OSError, ValueError) as err:
        dg.log(CN.FTL, "Unable to parse '%s': %s (%s)" % (pth, err, mth))
        return None

    if not isinstance(io, dict):
        return dg.mismatch("io", io, dict, mth, CN.FTL, None)

    return io


def _entries(io={}, key="", dg=None) -> list:
    """Returns the list of (dict) entries under an override document key."""
    mth = "tbd._entries"

    if key not in io: return []

    if not isinstance(io[key], list):
        return dg.mismatch(key, io[key], list, mth, CN.ERR, [])

    entries = []

    for entry in io[key]:
        if isinstance(entry, dict):
            entries.append(entry)
        else:
            dg.mismatch("%s entry" % key, entry, dict, mth, CN.ERR)

    return entries


def _isSet(psi=None, entry={}, key="psi", id="", dg=None) -> bool:
    """Whether an entry's (optional) PSI set is a known PSI set identifier."""
    if key not in entry: return True

    st = entry[key]

    if not isinstance(st, str):
        return dg.mismatch("%s PSI set" % id, st, str, "tbd.inputs", CN.ERR, False)

    return st in psi.set


def _groups(surfaces={}, psi=None, io={}, dg=None):
    """Validates story, space type & space entries: each must target a group
    holding at least one TBD surface, and name a known PSI set (if any).
    Invalid entries are logged and dropped.
    """
    mth = "tbd.inputs"

    for key, attr in GROUPS.items():
        valid = []

        for entry in _entries(io, key, dg):
            if "id" not in entry:
                dg.hashkey(key, entry, "id", mth, CN.ERR)
                continue

            id    = entry["id"]
            found = False

            if not isinstance(id, str):
                dg.mismatch("%s id" % key, id, str, mth, CN.ERR)
                continue

            for surface in surfaces.values():
                if surface.names()[attr] == id:
                    found = True
                    break

            if not found:
                dg.log(CN.ERR, "JSON/OSM '%s' (%s)" % (id, mth))
                continue

            if not _isSet(psi, entry, "psi", id, dg):
                dg.log(CN.ERR, "JSON/PSI '%s' set (%s)" % (id, mth))
                continue

            if "parapet" in entry and not isinstance(entry["parapet"], bool):
                dg.mismatch("%s parapet" % id, entry["parapet"], bool, mth, CN.ERR)
                continue

            valid.append(entry)

        if key in io: io[key] = valid


def _surfaces(surfaces={}, psi=None, khi=None, io={}, dg=None):
    """Validates surface entries: known surface, PSI set & KHI entries."""
    mth   = "tbd.inputs"
    valid = []

    for entry in _entries(io, "surfaces", dg):
        if "id" not in entry:
            dg.hashkey("surfaces", entry, "id", mth, CN.ERR)
            continue

        id = entry["id"]

        if not isinstance(id, str):
            dg.mismatch("surfaces id", id, str, mth, CN.ERR)
            continue

        if id not in surfaces:
            dg.log(CN.ERR, "JSON/OSM surface '%s' (%s)" % (id, mth))
            continue

        if not _isSet(psi, entry, "psi", id, dg):
            dg.log(CN.ERR, "JSON/OSM surface/set '%s' (%s)" % (id, mth))
            continue

        if "parapet" in entry and not isinstance(entry["parapet"], bool):
            dg.mismatch("%s parapet" % id, entry["parapet"], bool, mth, CN.ERR)
            continue

        if "khis" in entry:
            khis = []

            for k in entry["khis"] if isinstance(entry["khis"], list) else []:
                if not isinstance(k, dict) or "id" not in k:
                    dg.invalid("%s KHI" % id, mth, 0, CN.ERR)
                    continue

                if not isinstance(k["id"], str):
                    dg.mismatch("%s KHI id" % id, k["id"], str, mth, CN.ERR)
                    continue

                if k["id"] not in khi.point:
                    dg.log(CN.ERR, "JSON/KHI surface '%s' '%s' (%s)" % (id, k["id"], mth))
                    continue

                try:
                    count = int(k.get("count", 1))
                except (TypeError, ValueError):
                    dg.mismatch("%s KHI count" % id, k["count"], int, mth, CN.ERR)
                    continue

                if count < 1:
                    dg.negative("%s KHI count" % id, mth, CN.ERR)
                    continue

                khis.append(dict(id=k["id"], count=count))

            entry["khis"] = khis

        valid.append(entry)

    if "surfaces" in io: io["surfaces"] = valid


def _subsurfaces(surfaces={}, io={}, dg=None):
    """Validates subsurface entries: known subsurface & U-factor (W/m2.K)."""
    mth   = "tbd.inputs"
    valid = []
    holes = set()

    for surface in surfaces.values(): holes.update(surface.openings())

    for entry in _entries(io, "subsurfaces", dg):
        if "id" not in entry or "usi" not in entry:
            dg.invalid("subsurface entry", mth, 0, CN.ERR)
            continue

        if not isinstance(entry["id"], str):
            dg.mismatch("subsurfaces id", entry["id"], str, mth, CN.ERR)
            continue

        if entry["id"] not in holes:
            dg.log(CN.ERR, "JSON/OSM subsurface '%s' (%s)" % (entry["id"], mth))
            continue

        try:
            usi = float(entry["usi"])
        except (TypeError, ValueError):
            dg.mismatch("%s usi" % entry["id"], entry["usi"], float, mth, CN.ERR)
            continue

        if usi < CN.TOL:
            dg.zero("%s usi" % entry["id"], mth, CN.ERR)
            continue

        entry["usi"] = usi
        valid.append(entry)

    if "subsurfaces" in io: io["subsurfaces"] = valid


def _edges(edges={}, psi=None, bdg="", io={}, dg=None):
    """Matches edge entries with TBD edges. An entry matches a TBD edge if
    ALL of its listed surfaces border the latter (which may border additional
    surfaces). Optional length & coordinates narrow down matches. Matching
    TBD edges are tagged with the entry's PSI type (and PSI set, if any).
    """
    mth = "tbd.inputs"

    for entry in _entries(io, "edges", dg):
        if "type" not in entry:
            dg.hashkey("edges", entry, "type", mth, CN.ERR)
            continue

        if "surfaces" not in entry:
            dg.hashkey("edges", entry, "surfaces", mth, CN.ERR)
            continue

        typ = str(entry["type"])
        ids = entry["surfaces"]

        if not isinstance(ids, list) or not ids:
            dg.invalid("edge surfaces", mth, 0, CN.ERR)
            continue

        if not all(isinstance(id, str) for id in ids):
            dg.invalid("edge surface ids", mth, 0, CN.ERR)
            continue

        if psi.safe(bdg, typ) is None:
            dg.log(CN.ERR, "Skipping invalid edge PSI '%s' (%s)" % (typ, mth))
            continue

        st = entry.get("psi")

        if st is not None:
            if not isinstance(st, str):
                dg.mismatch("edge PSI set", st, str, mth, CN.ERR)
                continue

            if st not in psi.set:
                dg.log(CN.ERR, "Missing edge PSI %s (%s)" % (st, mth))
                continue

            if psi.safe(st, typ) is None:
                dg.log(CN.ERR, "Invalid %s: %s (%s)" % (st, typ, mth))
                continue

        e1 = None
        xyz = [k in entry for k in _COORDS]

        if any(xyz):
            if not all(xyz):
                dg.log(CN.ERR, "Mismatch '%s' edge vertices (%s)" % (ids[0], mth))
                continue

            try:
                c = [float(entry[k]) for k in _COORDS]
            except (TypeError, ValueError):
                dg.invalid("'%s' edge vertices" % ids[0], mth, 0, CN.ERR)
                continue

            e1 = dict(v0=openstudio.Point3d(c[0], c[1], c[2]),
                      v1=openstudio.Point3d(c[3], c[4], c[5]))

        length = None

        if "length" in entry:
            try:
                length = float(entry["length"])
            except (TypeError, ValueError):
                dg.mismatch("edge length", entry["length"], float, mth, CN.ERR)
                continue

        found = False

        for edge in edges.values():
            if edge.io_type: continue
            if not all(id in edge.surfaces for id in ids): continue
            if length is not None and abs(edge.length - length) >= CN.TOL: continue

            if e1 is not None:
                if not matches(e1, dict(v0=edge.v0, v1=edge.v1), CN.TOL, dg): continue

            found = True
            edge.io_type = typ
            if st is not None: edge.io_set = st

        if not found:
            dg.log(CN.ERR, "Unmatched '%s' %s edge (%s)" % (ids[0], typ, mth))


def inputs(surfaces={}, edges={}, argh={}, dg=None) -> dict:
    """Processes an (optional) override document: it appends PSI & KHI
    entries to the built-in libraries, sets the building PSI set, validates
    group, surface & subsurface entries, then tags matching TBD edges.

    Args:
        surfaces (dict): TBD Surface records, keyed by id.
        edges (dict): TBD Edge records, keyed by id.
        argh (dict): processing options: "option" (building PSI set, if
            undefined in the override document) & "io_path" (dict or path).
        dg (Diagnostics): run log.

    Returns:
        dict: "io" (sanitized override document), "psi" (PSI library) and
        "khi" (KHI library). FATAL if the building PSI set is unknown or
        incomplete, or if the override document can't be parsed (see logs).
    """
    mth = "tbd.inputs"
    dg  = _dg(dg)
    ipt = dict(io={}, psi=PSI(dg), khi=KHI(dg))

    if not isinstance(surfaces, dict):
        return dg.mismatch("surfaces", surfaces, dict, mth, CN.DBG, ipt)
    if not isinstance(edges, dict):
        return dg.mismatch("edges", edges, dict, mth, CN.DBG, ipt)
    if not isinstance(argh, dict):
        return dg.mismatch("argh", argh, dict, mth, CN.DBG, ipt)
    if "option" not in argh:
        return dg.hashkey("argh", argh, "option", mth, CN.DBG, ipt)

    psi = ipt["psi"]
    khi = ipt["khi"]
    pth = argh.get("io_path")
    opt = oslg.trim(argh["option"])

    if not pth:
        if not psi.complete(opt):
            dg.log(CN.FTL, "Incomplete building PSI set '%s' (%s)" % (opt, mth))
            return ipt

        ipt["io"] = dict(building=dict(psi=opt))

        return ipt

    if not isinstance(pth, (str, dict)):
        return dg.mismatch("io_path", pth, str, mth, CN.FTL, ipt)

    io = _load(pth, dg)
    if io is None: return ipt

    for entry in _entries(io, "psis", dg): psi.append(entry)
    for entry in _entries(io, "khis", dg): khi.append(entry)

    if "building" not in io: io["building"] = dict(psi=opt)

    bdg = io["building"]

    if not isinstance(bdg, dict):
        return dg.mismatch("building", bdg, dict, mth, CN.FTL, ipt)

    if "psi" not in bdg:
        return dg.hashkey("Building PSI", bdg, "psi", mth, CN.FTL, ipt)

    if not psi.complete(bdg["psi"]):
        return dg.invalid("Complete building PSI", mth, 3, CN.FTL, ipt)

    _groups(surfaces, psi, io, dg)
    _surfaces(surfaces, psi, khi, io, dg)
    _subsurfaces(surfaces, io, dg)
    _edges(edges, psi, bdg["psi"], io, dg)

    ipt["io"] = io

    return ipt
