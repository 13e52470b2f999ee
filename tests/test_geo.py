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

import math
import unittest
import openstudio
from src.tbd.diagnostics import Diagnostics
from src.tbd import geo

DBG = geo.CN.DBG
TOL = geo.CN.TOL

def _pts(coords=[]) -> list:
    return [openstudio.Point3d(x, y, z) for x, y, z in coords]

def _square(x0=0, y0=0, w=1) -> openstudio.Point3dVector:
    return geo.p3Dv(_pts([(x0, y0, 0), (x0 + w, y0, 0), (x0 + w, y0 + w, 0), (x0, y0 + w, 0)]))

class TestTBDGeometry(unittest.TestCase):
    def test00_constants(self):
        self.assertAlmostEqual(geo.CN.TOL, 0.01, places=4)
        self.assertAlmostEqual(geo.CN.TOL2, 0.0001, places=6)
        self.assertAlmostEqual(geo.CN.MINW, 0.0254, places=4)

    def test01_points(self):
        pts = _pts([(0, 0, 0), (1, 0, 0), (1, 1, 0)])
        vec = geo.p3Dv(pts)
        self.assertTrue(isinstance(vec, openstudio.Point3dVector))
        self.assertEqual(len(vec), 3)
        self.assertEqual(len(geo.p3Dv(pts[0])), 1)
        self.assertEqual(len(geo.p3Dv(pts + ["x"])), 0)
        self.assertEqual(len(geo.p3Dv(None)), 0)

        v = geo.scalar(openstudio.Vector3d(1, 2, 0), 2)
        self.assertAlmostEqual(v.x(), 2, places=3)
        self.assertAlmostEqual(v.y(), 4, places=3)
        self.assertAlmostEqual(geo.scalar("x", 2).length(), 0, places=3)

        p1 = openstudio.Point3d(1, 1, 1)
        p2 = openstudio.Point3d(1.005, 1, 1)
        self.assertTrue(geo.areSame(p1, p2))
        self.assertFalse(geo.areSame(p1, p2, 0.001))
        self.assertFalse(geo.areSame(p1, "x"))

    def test02_matches(self):
        dg = Diagnostics(DBG)
        o  = openstudio.Point3d(0, 0, 0)
        x  = openstudio.Point3d(1, 0, 0)
        e1 = dict(v0=o, v1=x)
        e2 = dict(v0=x, v1=o)
        e3 = dict(v0=o, v1=openstudio.Point3d(1, 0, 1))
        e4 = dict(v0=openstudio.Point3d(0.02, 0, 0), v1=x)

        self.assertTrue(geo.matches(e1, e1, TOL, dg))
        self.assertTrue(geo.matches(e1, e2, TOL, dg))
        self.assertFalse(geo.matches(e1, e3, TOL, dg))
        self.assertFalse(geo.matches(e1, e4, TOL, dg))
        self.assertTrue(geo.matches(e1, e4, 0.05, dg))
        self.assertEqual(dg.status(), 0)

        self.assertFalse(geo.matches(e1, dict(v0=o), TOL, dg))
        self.assertTrue(dg.is_debug())
        self.assertEqual(len(dg.logs()), 1)
        dg.clean()

        self.assertFalse(geo.matches(e1, dict(v0=o, v1=o), TOL, dg))
        self.assertEqual(dg.logs()[0]["message"], "Zero 'e2' (tbd.matches)")
        dg.clean()

        self.assertFalse(geo.matches(e1, e2, "x", dg))
        self.assertTrue(dg.is_debug())

    def test03_true_normals(self):
        dg    = Diagnostics(DBG)
        model = openstudio.model.Model()
        space = openstudio.model.Space(model)
        pts   = _pts([(0, 0, 3), (0, 0, 0), (10, 0, 0), (10, 0, 3)])
        wall  = openstudio.model.Surface(geo.p3Dv(pts), model)
        wall.setSpace(space)

        n = geo.trueNormal(wall, 0, dg)
        self.assertAlmostEqual(n.x(), 0, places=3)
        self.assertAlmostEqual(n.y(), -1, places=3)

        # A south-facing wall, rotated 90deg clockwise, faces west.
        n = geo.trueNormal(wall, 90, dg)
        self.assertAlmostEqual(n.x(), -1, places=3)
        self.assertAlmostEqual(n.y(), 0, places=3)
        self.assertAlmostEqual(n.z(), 0, places=3)
        self.assertEqual(dg.status(), 0)

        self.assertEqual(geo.trueNormal(wall, "x", dg), None)
        self.assertEqual(geo.trueNormal("wall", 0, dg), None)
        self.assertTrue(dg.is_debug())
        dg.clean()

        space.setDirectionofRelativeNorth(30)
        model.getBuilding().setNorthAxis(15)
        tr = geo.transforms(space, dg)
        self.assertTrue(isinstance(tr["t"], openstudio.Transformation))
        self.assertAlmostEqual(tr["r"], 45, places=3)

        tr = geo.transforms(wall, dg)
        self.assertEqual(tr["t"], None)
        self.assertEqual(tr["r"], None)
        self.assertTrue(dg.is_debug())
        dg.clean()

        self.assertTrue(geo.validate(wall, dg))
        self.assertFalse(geo.validate(space, dg))
        self.assertTrue(dg.is_debug())

    def test04_offsets(self):
        dg  = Diagnostics(DBG)
        sq  = _square()

        # Brute force approach (OpenStudio SDK versions < v3.4.0).
        big = geo.offset(sq, 0.1, dg, 330)
        self.assertEqual(len(big), 4)
        self.assertAlmostEqual(openstudio.getArea(big).get(), 1.44, places=2)
        self.assertTrue(geo.areSame(big[0], openstudio.Point3d(-0.1, -0.1, 0)))
        self.assertTrue(geo.areSame(big[2], openstudio.Point3d(1.1, 1.1, 0)))

        small = geo.offset(sq, -0.1, dg, 330)
        self.assertAlmostEqual(openstudio.getArea(small).get(), 0.64, places=2)

        # OpenStudio buffer (SDK v3.4.0+): same footprints.
        big = geo.offset(sq, 0.1, dg, 340)
        self.assertAlmostEqual(openstudio.getArea(big).get(), 1.44, places=2)
        self.assertTrue(geo.fits(sq, big, dg))
        n = openstudio.getOutwardNormal(big).get()
        self.assertAlmostEqual(n.z(), 1, places=3)

        small = geo.offset(sq, -0.1, dg, 340)
        self.assertAlmostEqual(openstudio.getArea(small).get(), 0.64, places=2)
        self.assertTrue(geo.fits(small, sq, dg))

        # Offsets narrower than min frame widths are ignored.
        same = geo.offset(sq, 0.01, dg)
        self.assertAlmostEqual(openstudio.getArea(same).get(), 1.0, places=2)
        self.assertEqual(dg.status(), 0)

        tri = geo.p3Dv(_pts([(0, 0, 0), (1, 0, 0), (0, 1, 0)]))
        self.assertEqual(len(geo.offset(tri, 0.1, dg, 330)), 3)

        five = _pts([(0, 0, 0), (1, 0, 0), (1, 1, 0), (0.5, 1.5, 0), (0, 1, 0)])
        self.assertEqual(len(geo.offset(five, 0.1, dg)), 5)
        self.assertTrue(dg.is_debug())

    def test05_fits_overlaps(self):
        dg    = Diagnostics(DBG)
        sq    = _square()
        big   = geo.offset(sq, 0.1, dg)
        small = geo.offset(sq, -0.1, dg)
        far   = _square(5, 5)
        half  = _square(0.5, 0)

        self.assertTrue(geo.fits(small, sq, dg))
        self.assertTrue(geo.fits(sq, big, dg))
        self.assertFalse(geo.fits(big, sq, dg))
        self.assertFalse(geo.fits(far, sq, dg))

        self.assertTrue(geo.overlaps(sq, half, dg))
        self.assertTrue(geo.overlaps(small, big, dg))
        self.assertFalse(geo.overlaps(sq, far, dg))
        self.assertEqual(dg.status(), 0)

        # Non-coplanar polygons neither fit nor overlap.
        up = geo.p3Dv(_pts([(0, 0, 1), (1, 0, 1), (1, 1, 1), (0, 1, 1)]))
        self.assertFalse(geo.fits(up, sq, dg))
        self.assertTrue(dg.is_debug())

if __name__ == "__main__":
    unittest.main()
