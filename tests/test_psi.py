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

import unittest
from src.tbd.diagnostics import Diagnostics
from src.tbd.geo import CN
from src.tbd.psi import PSI, KHI, TYPES, variants

DBG = CN.DBG
ERR = CN.ERR

POOR = "poor (BETBG)"

class TestTBDPsiLibrary(unittest.TestCase):
    def test00_types(self):
        self.assertEqual(len(TYPES), 65)
        self.assertTrue("fenestration" in TYPES)
        self.assertTrue("balconydoorsillconvex" in TYPES)
        self.assertFalse("fenestrationconcave" in TYPES)
        self.assertEqual(variants("corner"), ["corner", "cornerconcave", "cornerconvex"])
        self.assertEqual(variants("joint"), ["joint"])

    def test01_builtin_sets(self):
        psi = PSI()

        for id in ("poor (BETBG)", "regular (BETBG)", "efficient (BETBG)",
                   "spandrel (BETBG)", "spandrel HP (BETBG)", "code (Quebec)",
                   "uncompliant (Quebec)", "(non thermal bridging)"):
            self.assertTrue(id in psi.set)
            self.assertTrue(psi.complete(id))

        val = psi.val[POOR]
        self.assertAlmostEqual(val["rimjoist"], 1.000, places=3)
        self.assertAlmostEqual(val["rimjoistconvex"], 1.000, places=3)
        self.assertAlmostEqual(val["parapet"], 0.800, places=3)
        self.assertAlmostEqual(val["cornerconvex"], 0.850, places=3)
        self.assertAlmostEqual(val["fenestration"], 0.500, places=3)
        self.assertAlmostEqual(val["balconysill"], 1.000, places=3)
        self.assertAlmostEqual(val["ceiling"], 0.000, places=3)

        none = psi.val["(non thermal bridging)"]
        for typ in TYPES: self.assertAlmostEqual(none[typ], 0.0, places=3)

    def test02_inheritance(self):
        psi = PSI()
        val = psi.val[POOR]
        has = psi.has[POOR]

        # Head, sill & jamb inherit from fenestration.
        self.assertFalse(has["head"])
        self.assertTrue(has["fenestration"])
        self.assertAlmostEqual(val["head"], 0.500, places=3)
        self.assertAlmostEqual(val["sillconcave"], 0.500, places=3)
        self.assertAlmostEqual(val["doorjamb"], 0.500, places=3)
        self.assertAlmostEqual(val["skylighthead"], 0.500, places=3)

        dg  = Diagnostics(DBG)
        psi = PSI(dg)
        set = dict(id="door set", fenestration=0.4, door=0.6, doorsill=0.7)
        self.assertTrue(psi.append(set))
        val = psi.val["door set"]
        self.assertAlmostEqual(val["jamb"], 0.4, places=3)
        self.assertAlmostEqual(val["doorhead"], 0.6, places=3)
        self.assertAlmostEqual(val["doorsill"], 0.7, places=3)
        self.assertAlmostEqual(val["doorsillconvex"], 0.7, places=3)
        self.assertAlmostEqual(val["skylightjamb"], 0.4, places=3)
        self.assertEqual(dg.status(), 0)

    def test03_parapet_variants(self):
        psi = PSI()
        set = dict(id="parapets", parapetconcave=0.6, parapetconvex=0.4)
        self.assertTrue(psi.append(set))

        val = psi.val["parapets"]
        self.assertAlmostEqual(val["parapetconcave"], 0.6, places=3)
        self.assertAlmostEqual(val["parapetconvex"], 0.4, places=3)
        self.assertAlmostEqual(val["roofconcave"], 0.6, places=3)
        self.assertAlmostEqual(val["parapet"], 0.6, places=3)
        self.assertAlmostEqual(val["roof"], 0.6, places=3)

        set = dict(id="direct", parapet=0.2, parapetconcave=0.6)
        self.assertTrue(psi.append(set))

        val = psi.val["direct"]
        self.assertAlmostEqual(val["parapet"], 0.2, places=3)
        self.assertAlmostEqual(val["parapetconvex"], 0.2, places=3)
        self.assertAlmostEqual(val["parapetconcave"], 0.6, places=3)

    def test04_append(self):
        dg  = Diagnostics(DBG)
        psi = PSI(dg)

        set = dict(id="partial", rimjoist=0.3)
        self.assertTrue(psi.append(set))
        self.assertTrue(psi.has["partial"]["joint"])
        self.assertTrue(psi.has["partial"]["transition"])
        self.assertTrue(psi.has["partial"]["ceiling"])
        self.assertAlmostEqual(psi.val["partial"]["joint"], 0.0, places=3)
        self.assertFalse(psi.complete("partial"))
        self.assertEqual(dg.status(), 0)

        # Duplicate set identifiers are rejected.
        self.assertFalse(psi.append(dict(id=POOR, rimjoist=0.1)))
        self.assertTrue(dg.is_error())
        self.assertEqual(len(dg.logs()), 1)
        m = "'%s': existing PSI set (tbd.PSI.append)" % POOR
        self.assertEqual(dg.logs()[0]["message"], m)
        self.assertAlmostEqual(psi.val[POOR]["rimjoist"], 1.0, places=3)
        dg.clean()

        self.assertFalse(psi.append(dict(id="bad", rimjoist="abc")))
        self.assertTrue(dg.is_error())
        self.assertFalse("bad" in psi.set)
        dg.clean()

        self.assertFalse(psi.append(dict(rimjoist=0.3)))
        self.assertTrue(dg.is_debug())
        self.assertTrue("Missing 'id' key" in dg.logs()[0]["message"])
        dg.clean()

        self.assertFalse(psi.append("set"))
        self.assertTrue(dg.is_debug())
        dg.clean()

    def test05_complete(self):
        psi = PSI()

        full = dict(id="full", head=0.3, sill=0.3, jamb=0.3,
                    cornerconcave=0.1, cornerconvex=0.2,
                    roofconcave=0.5, roofconvex=0.4,
                    party=0.2, grade=0.4, balcony=0.6, rimjoist=0.3)
        self.assertTrue(psi.append(full))
        self.assertTrue(psi.complete("full"))

        nope = dict(full)
        nope["id"] = "no sill"
        nope.pop("sill")
        self.assertTrue(psi.append(nope))
        self.assertFalse(psi.complete("no sill"))

        nope = dict(full)
        nope["id"] = "no convex"
        nope.pop("roofconvex")
        self.assertTrue(psi.append(nope))
        self.assertFalse(psi.complete("no convex"))

        dg  = Diagnostics(DBG)
        psi = PSI(dg)
        self.assertFalse(psi.complete("unknown"))
        self.assertTrue(dg.is_error())

    def test06_safe(self):
        dg  = Diagnostics(DBG)
        psi = PSI(dg)

        self.assertEqual(psi.safe(POOR, "rimjoistconcave"), "rimjoist")
        self.assertEqual(psi.safe(POOR, "cornerconvex"), "corner")
        self.assertEqual(psi.safe(POOR, "head"), "fenestration")
        self.assertEqual(psi.safe(POOR, "jambconvex"), "fenestration")
        self.assertEqual(psi.safe(POOR, "doorsill"), "door")
        self.assertEqual(psi.safe(POOR, "skylightjamb"), "skylight")
        self.assertEqual(psi.safe(POOR, "transition"), "transition")
        self.assertEqual(dg.status(), 0)

        self.assertTrue(psi.append(dict(id="windows", fenestration=0.3)))
        self.assertEqual(psi.safe("windows", "doorhead"), "fenestration")
        self.assertEqual(psi.safe("windows", "skylight"), "fenestration")
        self.assertEqual(psi.safe("windows", "rimjoist"), None)
        self.assertEqual(psi.safe("windows", "rimjoistconvex"), None)

        self.assertEqual(psi.safe("unknown", "rimjoist"), None)
        self.assertTrue(dg.is_error())
        dg.clean()

        self.assertEqual(psi.safe(POOR, 3), None)
        self.assertTrue(dg.is_debug())

    def test07_shorthands(self):
        dg  = Diagnostics(DBG)
        psi = PSI(dg)

        sh = psi.shorthands(POOR)
        self.assertTrue(sh["has"]["corner"])
        self.assertAlmostEqual(sh["val"]["party"], 0.850, places=3)

        sh = psi.shorthands("unknown")
        self.assertEqual(sh["has"], {})
        self.assertEqual(sh["val"], {})
        self.assertTrue(dg.is_error())

    def test08_khi(self):
        dg  = Diagnostics(DBG)
        khi = KHI(dg)

        self.assertAlmostEqual(khi.point[POOR], 0.900, places=3)
        self.assertAlmostEqual(khi.point["(non thermal bridging)"], 0.0, places=3)

        self.assertTrue(khi.append(dict(id="column", point=0.5)))
        self.assertAlmostEqual(khi.point["column"], 0.5, places=3)
        self.assertEqual(dg.status(), 0)

        self.assertFalse(khi.append(dict(id="column", point=0.8)))
        self.assertTrue(dg.is_error())
        m = "Skipping 'column': existing KHI entry (tbd.KHI.append)"
        self.assertEqual(dg.logs()[0]["message"], m)
        self.assertAlmostEqual(khi.point["column"], 0.5, places=3)
        dg.clean()

        self.assertFalse(khi.append(dict(id="beam")))
        self.assertTrue(dg.is_debug())
        self.assertFalse("beam" in khi.point)
        dg.clean()

        self.assertFalse(khi.append(dict(id="beam", point="x")))
        self.assertTrue(dg.is_error())
        dg.clean()

        self.assertFalse(khi.append([]))
        self.assertTrue(dg.is_debug())

if __name__ == "__main__":
    unittest.main()
