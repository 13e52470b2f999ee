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
import openstudio
from src.tbd.diagnostics import Diagnostics
from src.tbd.geo import CN, p3Dv
from src.tbd.records import Kind, Boundary, Layer
from src.tbd import envelope
from src.tbd import conditioning

DBG = CN.DBG
TOL = CN.TOL

def _pts(coords=[]) -> openstudio.Point3dVector:
    return p3Dv([openstudio.Point3d(x, y, z) for x, y, z in coords])

def _construction(model=None, id="wall") -> openstudio.model.Construction:
    board = openstudio.model.StandardOpaqueMaterial(model)
    board.setName("%s board" % id)
    board.setRoughness("MediumRough")
    board.setThickness(0.0127)
    board.setConductivity(0.16)
    board.setDensity(800)
    board.setSpecificHeat(1090)

    insul = openstudio.model.StandardOpaqueMaterial(model)
    insul.setName("%s insulation" % id)
    insul.setRoughness("MediumRough")
    insul.setThickness(0.1)
    insul.setConductivity(0.04)
    insul.setDensity(30)
    insul.setSpecificHeat(1210)

    layers = openstudio.model.MaterialVector()
    layers.append(board)
    layers.append(insul)
    layers.append(board)

    con = openstudio.model.Construction(model)
    con.setName(id)
    con.setLayers(layers)

    return con

def _glazing(model=None, u=2.0) -> openstudio.model.Construction:
    glz    = openstudio.model.SimpleGlazing(model, u, 0.4)
    layers = openstudio.model.FenestrationMaterialVector()
    layers.append(glz)
    con    = openstudio.model.Construction(layers)
    con.setName("glazing")

    return con

def _wall(model=None, space=None):
    wall = openstudio.model.Surface(_pts([(0, 0, 3), (0, 0, 0), (10, 0, 0), (10, 0, 3)]), model)
    wall.setName("wall")
    wall.setSpace(space)
    wall.setOutsideBoundaryCondition("Outdoors")
    wall.setConstruction(_construction(model))

    window = openstudio.model.SubSurface(_pts([(2, 0, 2), (2, 0, 0.5), (4, 0, 0.5), (4, 0, 2)]), model)
    window.setName("window")
    window.setSubSurfaceType("FixedWindow")
    window.setConstruction(_glazing(model))
    window.setSurface(wall)

    return wall, window

class TestTBDEnvelope(unittest.TestCase):
    def test00_rsi(self):
        dg    = Diagnostics(DBG)
        model = openstudio.model.Model()
        con   = _construction(model)

        r = envelope.rsi(con, 0.15, 0.0, dg)
        self.assertAlmostEqual(r, 0.15 + 2 * 0.0127 / 0.16 + 2.5, places=3)
        self.assertAlmostEqual(envelope.rsi(_glazing(model, 2.0), 0.15, 0.0, dg), 0.5, places=3)
        self.assertEqual(dg.status(), 0)

        self.assertAlmostEqual(envelope.rsi("con", 0.15, 0.0, dg), 0.0, places=3)
        self.assertTrue(dg.is_debug())
        dg.clean()

        self.assertAlmostEqual(envelope.rsi(con, -1, 0.0, dg), 0.0, places=3)
        self.assertTrue(dg.is_error())
        self.assertEqual(dg.logs()[0]["message"], "Negative 'film' (tbd.rsi)")

    def test01_insulating_layer(self):
        dg    = Diagnostics(DBG)
        model = openstudio.model.Model()
        con   = _construction(model)

        lyr = envelope.insulatingLayer(con, dg)
        self.assertEqual(lyr["index"], 1)
        self.assertEqual(lyr["type"], Layer.STANDARD)
        self.assertAlmostEqual(lyr["r"], 2.5, places=3)

        # Massless layers qualify, as long as RSi >= 0.001.
        board  = con.getLayer(0)
        foam   = openstudio.model.MasslessOpaqueMaterial(model, "Smooth", 3.0)
        layers = openstudio.model.MaterialVector()
        layers.append(board)
        layers.append(foam)
        con2   = openstudio.model.Construction(model)
        con2.setLayers(layers)

        lyr = envelope.insulatingLayer(con2, dg)
        self.assertEqual(lyr["index"], 1)
        self.assertEqual(lyr["type"], Layer.MASSLESS)
        self.assertAlmostEqual(lyr["r"], 3.0, places=3)
        self.assertEqual(dg.status(), 0)

        # Layers thinner than 3mm don't qualify.
        film = openstudio.model.StandardOpaqueMaterial(model)
        film.setThickness(0.002)
        film.setConductivity(0.001)
        layers = openstudio.model.MaterialVector()
        layers.append(film)
        con3   = openstudio.model.Construction(model)
        con3.setLayers(layers)

        lyr = envelope.insulatingLayer(con3, dg)
        self.assertEqual(lyr["index"], None)
        self.assertEqual(lyr["type"], None)
        self.assertAlmostEqual(lyr["r"], 0, places=3)

        lyr = envelope.insulatingLayer("con", dg)
        self.assertEqual(lyr["index"], None)
        self.assertTrue(dg.is_debug())

    def test02_spandrels(self):
        dg    = Diagnostics(DBG)
        model = openstudio.model.Model()
        space = openstudio.model.Space(model)
        wall, window = _wall(model, space)

        self.assertFalse(envelope.areSpandrels(wall, dg))
        wall.setName("spandrel wall")
        self.assertTrue(envelope.areSpandrels(wall, dg))
        self.assertTrue(envelope.areSpandrels([wall], dg))

        wall.setName("wall")
        wall.additionalProperties().setFeature("spandrel", True)
        self.assertTrue(envelope.areSpandrels(wall, dg))
        wall.additionalProperties().setFeature("spandrel", False)
        self.assertFalse(envelope.areSpandrels(wall, dg))
        self.assertEqual(dg.status(), 0)

        self.assertFalse(envelope.areSpandrels(["wall", wall], dg))
        self.assertTrue(dg.is_debug())

    def test03_u_factors(self):
        dg    = Diagnostics(DBG)
        model = openstudio.model.Model()
        space = openstudio.model.Space(model)
        wall, window = _wall(model, space)

        u = envelope.uFactor(window, wall.filmResistance(), dg)
        self.assertAlmostEqual(u, 2.0, places=2)
        self.assertEqual(envelope.uFactor(wall, 0, dg), None)
        self.assertTrue(dg.is_debug())

    def test04_properties(self):
        dg    = Diagnostics(DBG)
        model = openstudio.model.Model()
        space = openstudio.model.Space(model)
        space.setName("space")
        wall, window = _wall(model, space)

        surface = envelope.properties(model, wall, dict(setpoints=False), dg)
        self.assertEqual(dg.status(), 0)
        self.assertEqual(surface.id, "wall")
        self.assertEqual(surface.kind, Kind.WALL)
        self.assertEqual(surface.boundary, Boundary.OUTDOORS)
        self.assertTrue(surface.conditioned)
        self.assertFalse(surface.ground)
        self.assertFalse(surface.spandrel)
        self.assertEqual(surface.index, 1)
        self.assertEqual(surface.ltype, Layer.STANDARD)
        self.assertAlmostEqual(surface.r, 2.5, places=3)
        self.assertAlmostEqual(surface.gross, 30, places=2)
        self.assertAlmostEqual(surface.net, 27, places=2)
        self.assertAlmostEqual(surface.minz, 0, places=2)
        self.assertAlmostEqual(surface.n.y(), -1, places=3)
        self.assertEqual(list(surface.windows), ["window"])
        self.assertEqual(surface.doors, {})
        self.assertEqual(surface.names()["space"], "space")
        self.assertEqual(surface.names()["story"], None)

        sub = surface.windows["window"]
        self.assertAlmostEqual(sub.area, 3, places=2)
        self.assertAlmostEqual(sub.u, 2.0, places=2)
        self.assertAlmostEqual(sub.minz, 0.5, places=2)
        self.assertFalse(sub.unhinged)
        self.assertEqual(sub.mult, 1)
        self.assertEqual(envelope.owners(dict(wall=surface)), dict(window="wall"))

        # Frame & divider widths extend rough openings.
        fd = openstudio.model.WindowPropertyFrameAndDivider(model)
        fd.setFrameWidth(0.05)
        self.assertTrue(window.setWindowPropertyFrameAndDivider(fd))

        surface = envelope.properties(model, wall, dict(setpoints=False), dg)
        sub     = surface.windows["window"]
        self.assertEqual(dg.status(), 0)
        self.assertAlmostEqual(sub.area, 2.1 * 1.6, places=2)
        self.assertAlmostEqual(sub.gross, 2.1 * 1.6, places=2)
        self.assertAlmostEqual(surface.net, 30 - 2.1 * 1.6, places=2)

        self.assertEqual(envelope.properties(model, "wall", {}, dg), None)
        self.assertTrue(dg.is_debug())

    def test05_orphans(self):
        dg    = Diagnostics(DBG)
        model = openstudio.model.Model()
        wall  = openstudio.model.Surface(_pts([(0, 0, 3), (0, 0, 0), (10, 0, 0), (10, 0, 3)]), model)
        wall.setName("orphan")

        self.assertEqual(envelope.properties(model, wall, {}, dg), None)
        self.assertTrue(dg.is_error())
        self.assertEqual(dg.logs()[0]["message"], "Empty ''orphan' space' (tbd.properties)")

class TestTBDConditioning(unittest.TestCase):
    def test00_schedules(self):
        dg    = Diagnostics(DBG)
        model = openstudio.model.Model()

        sched = openstudio.model.ScheduleRuleset(model, 20)
        rule  = openstudio.model.ScheduleRule(sched)
        rule.daySchedule().addValue(openstudio.Time(0, 24, 0, 0), 22)

        res = conditioning.scheduleRulesetMinMax(sched, dg)
        self.assertAlmostEqual(res["min"], 20, places=2)
        self.assertAlmostEqual(res["max"], 22, places=2)

        constant = openstudio.model.ScheduleConstant(model)
        constant.setValue(18)
        res = conditioning.scheduleConstantMinMax(constant, dg)
        self.assertAlmostEqual(res["min"], 18, places=2)
        self.assertAlmostEqual(res["max"], 18, places=2)
        self.assertEqual(dg.status(), 0)

        res = conditioning.scheduleRulesetMinMax(constant, dg)
        self.assertEqual(res["min"], None)
        self.assertEqual(res["max"], None)
        self.assertTrue(dg.is_debug())

    def test01_setpoints(self):
        dg    = Diagnostics(DBG)
        model = openstudio.model.Model()
        self.assertFalse(conditioning.hasHeatingTemperatureSetpoints(model, dg))
        self.assertFalse(conditioning.hasCoolingTemperatureSetpoints(model, dg))

        heat = openstudio.model.ScheduleConstant(model)
        heat.setValue(21)
        cool = openstudio.model.ScheduleConstant(model)
        cool.setValue(24)

        tstat = openstudio.model.ThermostatSetpointDualSetpoint(model)
        tstat.setHeatingSetpointTemperatureSchedule(heat)
        tstat.setCoolingSetpointTemperatureSchedule(cool)

        zone = openstudio.model.ThermalZone(model)
        zone.setThermostatSetpointDualSetpoint(tstat)

        office = openstudio.model.Space(model)
        office.setThermalZone(zone)
        attic  = openstudio.model.Space(model)

        self.assertTrue(conditioning.hasHeatingTemperatureSetpoints(model, dg))
        self.assertTrue(conditioning.hasCoolingTemperatureSetpoints(model, dg))

        res = conditioning.maxHeatScheduledSetpoint(zone, dg)
        self.assertAlmostEqual(res["spt"], 21, places=2)
        self.assertTrue(res["dual"])

        res = conditioning.minCoolScheduledSetpoint(zone, dg)
        self.assertAlmostEqual(res["spt"], 24, places=2)
        self.assertTrue(res["dual"])

        stps = conditioning.setpoints(office, dg)
        self.assertAlmostEqual(stps["heating"], 21, places=2)
        self.assertAlmostEqual(stps["cooling"], 24, places=2)
        self.assertFalse(conditioning.isUnconditioned(office, dg))

        # Spaces outside thermal zones are unconditioned.
        self.assertTrue(conditioning.isUnconditioned(attic, dg))

        key = "space_conditioning_category"
        office.additionalProperties().setFeature(key, "Unconditioned")
        self.assertTrue(conditioning.isUnconditioned(office, dg))
        self.assertEqual(dg.status(), 0)

        office.additionalProperties().setFeature(key, "Conditioned?")
        self.assertFalse(conditioning.isUnconditioned(office, dg))
        self.assertTrue(dg.is_error())

    def test02_vestibules_plenums(self):
        dg    = Diagnostics(DBG)
        model = openstudio.model.Model()
        space = openstudio.model.Space(model)
        self.assertFalse(conditioning.areVestibules(space, dg))
        self.assertFalse(conditioning.arePlenums(space, dg))

        vestibule = openstudio.model.SpaceType(model)
        vestibule.setName("Entry Vestibule")
        space.setSpaceType(vestibule)
        self.assertTrue(conditioning.areVestibules(space, dg))
        self.assertTrue(conditioning.areVestibules([space], dg))

        space.additionalProperties().setFeature("vestibule", False)
        self.assertFalse(conditioning.areVestibules(space, dg))

        plenum = openstudio.model.SpaceType(model)
        plenum.setName("Plenum")
        attic  = openstudio.model.Space(model)
        attic.setSpaceType(plenum)
        self.assertFalse(conditioning.arePlenums(attic, dg))

        attic.setPartofTotalFloorArea(False)
        self.assertTrue(conditioning.arePlenums(attic, dg))
        self.assertFalse(conditioning.areVestibules(attic, dg))

        # Plenums are indirectly conditioned.
        stps = conditioning.setpoints(attic, dg)
        self.assertAlmostEqual(stps["heating"], 21, places=2)
        self.assertAlmostEqual(stps["cooling"], 24, places=2)
        self.assertEqual(dg.status(), 0)

        self.assertFalse(conditioning.arePlenums("attic", dg))
        self.assertTrue(dg.is_debug())

if __name__ == "__main__":
    unittest.main()
