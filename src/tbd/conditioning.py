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

from src.tbd.geo import CN, _dg


def hasAirLoopsHVAC(model=None, dg=None) -> bool:
    """Validates if model has zones with HVAC air loops.

    Args:
        model (openstudio.model.Model): An OpenStudio model.
        dg (Diagnostics): run log.

    Returns:
        bool: Whether model has HVAC air loops.
        False: If invalid input (see logs).
    """
    mth = "tbd.hasAirLoopsHVAC"
    cl  = openstudio.model.Model

    if not isinstance(model, cl):
        return _dg(dg).mismatch("model", model, cl, mth, CN.DBG, False)

    for zone in model.getThermalZones():
        if zone.canBePlenum(): continue
        if zone.airLoopHVACs() or zone.isPlenum(): return True

    return False


def _minmax(vals=[]) -> dict:
    res = dict(min=None, max=None)

    try:
        vals = [float(val) for val in vals]
    except (TypeError, ValueError):
        return res

    if vals:
        res["min"] = min(vals)
        res["max"] = max(vals)

    return res


def scheduleRulesetMinMax(sched=None, dg=None) -> dict:
    """Returns MIN/MAX values of a schedule (ruleset).

    Args:
        sched (openstudio.model.ScheduleRuleset): A schedule.
        dg (Diagnostics): run log.

    Returns:
        dict:
        - "min" (float): min temperature. (None if invalid inputs - see logs).
        - "max" (float): max temperature. (None if invalid inputs - see logs).
    """
    mth = "tbd.scheduleRulesetMinMax"
    cl  = openstudio.model.ScheduleRuleset
    res = dict(min=None, max=None)

    if not isinstance(sched, cl):
        return _dg(dg).mismatch("sched", sched, cl, mth, CN.DBG, res)

    vals = list(sched.defaultDaySchedule().values())

    for rule in sched.scheduleRules(): vals += list(rule.daySchedule().values())

    return _minmax(vals)


def scheduleConstantMinMax(sched=None, dg=None) -> dict:
    """Returns MIN/MAX values of a schedule (constant)."""
    mth = "tbd.scheduleConstantMinMax"
    cl  = openstudio.model.ScheduleConstant
    res = dict(min=None, max=None)

    if not isinstance(sched, cl):
        return _dg(dg).mismatch("sched", sched, cl, mth, CN.DBG, res)

    return _minmax([sched.value()])


def scheduleCompactMinMax(sched=None, dg=None) -> dict:
    """Returns MIN/MAX values of a schedule (compact). Only values following
    an "Until" field are retained.
    """
    mth  = "tbd.scheduleCompactMinMax"
    cl   = openstudio.model.ScheduleCompact
    vals = []
    prev = ""
    res  = dict(min=None, max=None)

    if not isinstance(sched, cl):
        return _dg(dg).mismatch("sched", sched, cl, mth, CN.DBG, res)

    for eg in sched.extensibleGroups():
        if "until" in prev:
            if eg.getDouble(0): vals.append(eg.getDouble(0).get())

        txt = eg.getString(0)

        if txt: prev = txt.get().lower()

    if not vals:
        return _dg(dg).empty("compact sched values", mth, CN.WRN, res)

    return _minmax(vals)


def scheduleIntervalMinMax(sched=None, dg=None) -> dict:
    """Returns MIN/MAX values of a schedule (interval)."""
    mth = "tbd.scheduleIntervalMinMax"
    cl  = openstudio.model.ScheduleInterval
    res = dict(min=None, max=None)

    if not isinstance(sched, cl):
        return _dg(dg).mismatch("sched", sched, cl, mth, CN.DBG, res)

    return _minmax(list(sched.timeSeries().values()))


def _scheduled(sched=None, heating=True, dg=None):
    """Returns the MAX (heating) or MIN (cooling) value of a temperature
    schedule, design day schedules included. None if unsupported or empty.
    """
    vals = []
    key  = "max" if heating else "min"

    if sched.to_ScheduleRuleset():
        sched = sched.to_ScheduleRuleset().get()
        vals.append(scheduleRulesetMinMax(sched, dg)[key])

        if heating:
            dd = sched.winterDesignDaySchedule()
        else:
            dd = sched.summerDesignDaySchedule()

        vals.append(_minmax(list(dd.values()))[key])
    elif sched.to_ScheduleConstant():
        sched = sched.to_ScheduleConstant().get()
        vals.append(scheduleConstantMinMax(sched, dg)[key])
    elif sched.to_ScheduleCompact():
        sched = sched.to_ScheduleCompact().get()
        vals.append(scheduleCompactMinMax(sched, dg)[key])
    elif sched.to_ScheduleInterval():
        sched = sched.to_ScheduleInterval().get()
        vals.append(scheduleIntervalMinMax(sched, dg)[key])
    elif sched.to_ScheduleYear():
        sched = sched.to_ScheduleYear().get()

        for week in sched.getScheduleWeeks():
            if heating:
                dd = week.winterDesignDaySchedule()
            else:
                dd = week.summerDesignDaySchedule()

            if dd: vals.append(_minmax(list(dd.get().values()))[key])

    vals = [val for val in vals if val is not None]

    if not vals: return None

    return max(vals) if heating else min(vals)


def _retain(spt=None, val=None, heating=True):
    if not val: return spt
    if spt is None: return val

    return max(spt, val) if heating else min(spt, val)


def _radiant(equip=None, heating=True):
    """Returns the temperature schedule of zone radiant equipment (if any)."""
    if heating:
        if equip.to_ZoneHVACHighTemperatureRadiant():
            equip = equip.to_ZoneHVACHighTemperatureRadiant().get()
            sched = equip.heatingSetpointTemperatureSchedule()
            if sched: return sched.get()

        if equip.to_ZoneHVACLowTemperatureRadiantElectric():
            equip = equip.to_ZoneHVACLowTemperatureRadiantElectric().get()
            return equip.heatingSetpointTemperatureSchedule()

        if equip.to_ZoneHVACLowTempRadiantConstFlow():
            coil = equip.to_ZoneHVACLowTempRadiantConstFlow().get().heatingCoil()
            if coil: coil = coil.get().to_CoilHeatingLowTempRadiantConstFlow()

            if coil:
                sched = coil.get().heatingHighControlTemperatureSchedule()
                if sched: return sched.get()

        if equip.to_ZoneHVACLowTempRadiantVarFlow():
            coil = equip.to_ZoneHVACLowTempRadiantVarFlow().get().heatingCoil()
            if coil: coil = coil.get().to_CoilHeatingLowTempRadiantVarFlow()

            if coil:
                sched = coil.get().heatingControlTemperatureSchedule()
                if sched: return sched.get()
    else:
        if equip.to_ZoneHVACLowTempRadiantConstFlow():
            coil = equip.to_ZoneHVACLowTempRadiantConstFlow().get().coolingCoil()
            if coil: coil = coil.get().to_CoilCoolingLowTempRadiantConstFlow()

            if coil:
                sched = coil.get().coolingLowControlTemperatureSchedule()
                if sched: return sched.get()

        if equip.to_ZoneHVACLowTempRadiantVarFlow():
            coil = equip.to_ZoneHVACLowTempRadiantVarFlow().get().coolingCoil()
            if coil: coil = coil.get().to_CoilCoolingLowTempRadiantVarFlow()

            if coil:
                sched = coil.get().coolingControlTemperatureSchedule()
                if sched: return sched.get()

    return None


def _scheduledSetpoint(zone=None, heating=True, dg=None) -> dict:
    res = dict(spt=None, dual=False)

    for equip in zone.equipment():
        sched = _radiant(equip, heating)
        if sched is None: continue

        res["spt"] = _retain(res["spt"], _scheduled(sched, heating, dg), heating)

    if not zone.thermostat(): return res

    tstat      = zone.thermostat().get()
    res["spt"] = None

    if tstat.to_ThermostatSetpointDualSetpoint():
        tstat = tstat.to_ThermostatSetpointDualSetpoint().get()
    elif tstat.to_ZoneControlThermostatStagedDualSetpoint():
        tstat = tstat.to_ZoneControlThermostatStagedDualSetpoint().get()
    else:
        return res

    if heating:
        sched = tstat.heatingSetpointTemperatureSchedule()
    else:
        sched = tstat.coolingSetpointTemperatureSchedule()

    if sched:
        res["dual"] = True
        res["spt" ] = _scheduled(sched.get(), heating, dg)

    return res


def maxHeatScheduledSetpoint(zone=None, dg=None) -> dict:
    """Returns MAX zone heating temperature schedule setpoint [°C] and
    whether zone has an active dual setpoint thermostat. Radiant heating
    setpoints are superseded by those of a thermostat.

    Args:
        zone (openstudio.model.ThermalZone): An OpenStudio thermal zone.
        dg (Diagnostics): run log.

    Returns:
        dict:
        - spt (float): MAX heating setpoint (None if invalid inputs - see logs).
        - dual (bool): dual setpoint? (False if invalid inputs - see logs).
    """
    mth = "tbd.maxHeatScheduledSetpoint"
    cl  = openstudio.model.ThermalZone
    res = dict(spt=None, dual=False)

    if not isinstance(zone, cl):
        return _dg(dg).mismatch("zone", zone, cl, mth, CN.DBG, res)

    return _scheduledSetpoint(zone, True, dg)


def minCoolScheduledSetpoint(zone=None, dg=None) -> dict:
    """Returns MIN zone cooling temperature schedule setpoint [°C] and
    whether zone has an active dual setpoint thermostat.

    Args:
        zone (openstudio.model.ThermalZone): An OpenStudio thermal zone.
        dg (Diagnostics): run log.

    Returns:
        dict:
        - spt (float): MIN cooling setpoint (None if invalid inputs - see logs).
        - dual (bool): dual setpoint? (False if invalid inputs - see logs).
    """
    mth = "tbd.minCoolScheduledSetpoint"
    cl  = openstudio.model.ThermalZone
    res = dict(spt=None, dual=False)

    if not isinstance(zone, cl):
        return _dg(dg).mismatch("zone", zone, cl, mth, CN.DBG, res)

    return _scheduledSetpoint(zone, False, dg)


def hasHeatingTemperatureSetpoints(model=None, dg=None) -> bool:
    """Confirms if model has zones with valid heating setpoint temperatures."""
    mth = "tbd.hasHeatingTemperatureSetpoints"
    cl  = openstudio.model.Model

    if not isinstance(model, cl):
        return _dg(dg).mismatch("model", model, cl, mth, CN.DBG, False)

    for zone in model.getThermalZones():
        if maxHeatScheduledSetpoint(zone, dg)["spt"]: return True

    return False


def hasCoolingTemperatureSetpoints(model=None, dg=None) -> bool:
    """Confirms if model has zones with valid cooling setpoint temperatures."""
    mth = "tbd.hasCoolingTemperatureSetpoints"
    cl  = openstudio.model.Model

    if not isinstance(model, cl):
        return _dg(dg).mismatch("model", model, cl, mth, CN.DBG, False)

    for zone in model.getThermalZones():
        if minCoolScheduledSetpoint(zone, dg)["spt"]: return True

    return False


def _spaces(spaces=None, mth="", dg=None):
    cl = openstudio.model.Space

    if isinstance(spaces, cl): return [spaces]

    if not isinstance(spaces, list):
        return _dg(dg).mismatch("spaces", spaces, list, mth, CN.DBG, None)

    for space in spaces:
        if not isinstance(space, cl):
            return _dg(dg).mismatch("space", space, cl, mth, CN.DBG, None)

    return spaces


def _spaceTypes(space=None) -> list:
    """Returns lowercase space type & standards space type names of a space."""
    names = []

    if space.spaceType():
        typ = space.spaceType().get()
        names.append(typ.nameString().lower())

        if typ.standardsSpaceType():
            names.append(typ.standardsSpaceType().get().lower())

    return names


def areVestibules(spaces=None, dg=None) -> bool:
    """Validates whether one or more spaces can be considered vestibule(s),
    either through a "vestibule" additional property, or a "vestibule"
    substring within its space type name (or standards space type).

    Args:
        spaces (list): One or more openstudio.model.Space instances.
        dg (Diagnostics): run log.

    Returns:
        bool: Whether space(s) can be considered as vestibule(s).
        False: If invalid input (see logs).
    """
    mth    = "tbd.areVestibules"
    spaces = _spaces(spaces, mth, dg)
    if spaces is None: return False

    for space in spaces:
        if space.additionalProperties().hasFeature("vestibule"):
            val = space.additionalProperties().getFeatureAsBoolean("vestibule")

            if val:
                if val.get() is True: continue

                return False

            _dg(dg).invalid("vestibule", mth, 1, CN.ERR)

        names = _spaceTypes(space)

        if any("plenum"    in name for name in names): return False
        if any("vestibule" in name for name in names): continue

        return False

    return True


def arePlenums(spaces=None, dg=None) -> bool:
    """Validates whether one or more spaces can be considered
    indirectly-conditioned plenum(s). A space that is part of the total floor
    area (or a vestibule) is never a plenum. Otherwise, a space is a plenum if
    its space type (or standards space type) holds a "plenum" substring, if
    it "isPlenum" in a model with HVAC air loops, or if its zone holds an
    inactive thermostat in a model otherwise holding setpoints.

    Args:
        spaces (list): One or more openstudio.model.Space instances.
        dg (Diagnostics): run log.

    Returns:
        bool: Whether space(s) can be considered plenum(s).
        False: If invalid input (see logs).
    """
    mth    = "tbd.arePlenums"
    spaces = _spaces(spaces, mth, dg)
    if spaces is None: return False

    for space in spaces:
        if space.partofTotalFloorArea(): return False
        if areVestibules(space, dg): return False

        if any("plenum" in name for name in _spaceTypes(space)): continue

        model = space.model()

        if hasAirLoopsHVAC(model, dg):
            if space.isPlenum(): continue

        zone   = space.thermalZone()
        heated = hasHeatingTemperatureSetpoints(model, dg)
        cooled = hasCoolingTemperatureSetpoints(model, dg)

        if (heated or cooled) and zone:
            zone = zone.get()
            heat = maxHeatScheduledSetpoint(zone, dg)
            cool = minCoolScheduledSetpoint(zone, dg)

            if heat["spt"] or cool["spt"]: return False

            # Inactive thermostat.
            if heat["dual"] or cool["dual"]: continue

        return False

    return True


def setpoints(space=None, dg=None) -> dict:
    """Retrieves a space's (implicit or explicit) heating/cooling setpoints.

    Zone thermostat (or radiant equipment) setpoints may be reset by a
    "space_conditioning_category" additional property (nonresconditioned,
    resconditioned, semiheated or unconditioned), or by an
    "indirectlyconditioned" link to a parent space. Plenums default to 21°C
    (heating) and 24°C (cooling).

    Args:
        space (openstudio.model.Space): An OpenStudio space.
        dg (Diagnostics): run log.

    Returns:
        dict:
        - heating (float): heating setpoint (None if invalid inputs - see logs).
        - cooling (float): cooling setpoint (None if invalid inputs - see logs).
    """
    mth = "tbd.setpoints"
    cl  = openstudio.model.Space
    res = dict(heating=None, cooling=None)
    tg1 = "space_conditioning_category"
    tg2 = "indirectlyconditioned"
    cts = ["nonresconditioned", "resconditioned", "semiheated", "unconditioned"]
    cnd = None
    dg  = _dg(dg)

    if not isinstance(space, cl):
        return dg.mismatch("space", space, cl, mth, CN.DBG, res)

    if space.additionalProperties().hasFeature(tg1):
        cnd = space.additionalProperties().getFeatureAsString(tg1)
        cnd = cnd.get().lower() if cnd else None

        if cnd == "unconditioned": return res

        if cnd not in cts:
            dg.invalid("%s:%s" % (tg1, cnd), mth, 0, CN.ERR)
            cnd = None

    if cnd is None:
        ide = space.additionalProperties().getFeatureAsString(tg2)

        if ide:
            ide = ide.get()
            dad = space.model().getSpaceByName(ide)

            if dad:
                space = dad.get()
                cnd   = tg2
            else:
                dg.log(CN.ERR, "Unknown space %s (%s)" % (ide, mth))

    heated = hasHeatingTemperatureSetpoints(space.model(), dg)
    cooled = hasCoolingTemperatureSetpoints(space.model(), dg)
    zone   = space.thermalZone()

    if heated or cooled:
        if not zone: return res

        zone = zone.get()
        res["heating"] = maxHeatScheduledSetpoint(zone, dg)["spt"]
        res["cooling"] = minCoolScheduledSetpoint(zone, dg)["spt"]

    if cnd == "semiheated":
        if not res["heating"]: res["heating"] = 14.0
        res["cooling"] = None
    elif cnd:
        if not res["heating"]: res["heating"] = 21.0
        if not res["cooling"]: res["cooling"] = 24.0

    if arePlenums(space, dg):
        if not res["heating"]: res["heating"] = 21.0
        if not res["cooling"]: res["cooling"] = 24.0

    return res


def isUnconditioned(space=None, dg=None) -> bool:
    """Validates if a space is UNCONDITIONED (no heating or cooling setpoint).

    Args:
        space (openstudio.model.Space): An OpenStudio space.
        dg (Diagnostics): run log.

    Returns:
        bool: Whether space is considered UNCONDITIONED.
        False: If invalid input (see logs).
    """
    mth = "tbd.isUnconditioned"
    cl  = openstudio.model.Space

    if not isinstance(space, cl):
        return _dg(dg).mismatch("space", space, cl, mth, CN.DBG, False)

    stps = setpoints(space, dg)

    if stps["heating"]: return False
    if stps["cooling"]: return False

    return True
