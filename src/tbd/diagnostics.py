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

import inspect
from oslg import oslg

_LENGTH = 160 # max message length (oslg default is 60)


class Diagnostics:
    """Run-specific log of DEBUG, INFO, WARNING, ERROR & FATAL entries.

    A Diagnostics instance is handed to (or created by) each TBD process, and
    collects log entries as dictionaries (keys: "level", "message"). Callers
    inspect the highest logged level (status) once done. Levels, tags and
    status messages are those of oslg.
    """

    def __init__(self, lvl=oslg.CN.INFO):
        self._level   = oslg.CN.INFO
        self._status  = 0
        self._records = []
        self.reset(lvl)

    def logs(self) -> list:
        """Returns the list of logged entries."""
        return self._records

    def level(self) -> int:
        """Returns the minimum level of logged entries."""
        return self._level

    def status(self) -> int:
        """Returns the highest level logged so far (0 if none)."""
        return self._status

    def is_debug(self) -> bool:
        return self._status == oslg.CN.DEBUG

    def is_info(self) -> bool:
        return self._status == oslg.CN.INFO

    def is_warn(self) -> bool:
        return self._status == oslg.CN.WARN

    def is_error(self) -> bool:
        return self._status == oslg.CN.ERROR

    def is_fatal(self) -> bool:
        return self._status == oslg.CN.FATAL

    def tag(self, lvl=None) -> str:
        """Returns the oslg tag (e.g. "WARNING") matching a log level."""
        if lvl is None: lvl = self._level

        return oslg.tag(lvl)

    def msg(self, stat=None) -> str:
        """Returns the oslg status message matching a log status."""
        if stat is None: stat = self._status

        return oslg.msg(stat)

    def reset(self, lvl=oslg.CN.DEBUG) -> int:
        """Resets the minimum logged level, if within accepted range."""
        try:
            lvl = int(lvl)
        except (TypeError, ValueError):
            return self._level

        if oslg.CN.DEBUG <= lvl <= oslg.CN.FATAL:
            self._level = lvl

        return self._level

    def clean(self) -> int:
        """Resets log status and entries, returns the current level."""
        self._status  = 0
        self._records = []

        return self._level

    def log(self, lvl=oslg.CN.DEBUG, message="") -> int:
        """Logs a new entry, if provided arguments are valid.

        Args:
            lvl (int): log level (oslg.CN.DEBUG to oslg.CN.FATAL)
            message (str): log message

        Returns:
            int: current log status.
        """
        try:
            lvl = int(lvl)
        except (TypeError, ValueError):
            return self._status

        message = oslg.trim(message, _LENGTH)

        if not message: return self._status
        if lvl < oslg.CN.DEBUG or lvl > oslg.CN.FATAL: return self._status
        if lvl < self._level: return self._status

        if lvl > self._status: self._status = lvl

        self._records.append(dict(level=lvl, message=message))

        return self._status

    def invalid(self, id="", mth="", ord=0, lvl=oslg.CN.DEBUG, res=None):
        """Logs an 'invalid object' message, returns 'res'."""
        id  = oslg.trim(id)
        mth = oslg.trim(mth)

        try:
            ord = int(ord)
        except (TypeError, ValueError):
            return res

        if not id or not mth: return res

        message = "Invalid '%s' " % id

        if ord > 0: message += "arg #%d " % ord

        message += "(%s)" % mth
        self.log(lvl, message)

        return res

    def mismatch(self, id="", obj=None, cl=None, mth="", lvl=oslg.CN.DEBUG, res=None):
        """Logs an 'instance/class mismatch' message, returns 'res'."""
        id  = oslg.trim(id)
        mth = oslg.trim(mth)

        if not inspect.isclass(cl) or isinstance(obj, cl): return res
        if not id or not mth: return res

        message  = "'%s' %s? " % (id, type(obj).__name__)
        message += "expecting %s (%s)" % (cl.__name__, mth)
        self.log(lvl, message)

        return res

    def hashkey(self, id="", dct={}, key="", mth="", lvl=oslg.CN.DEBUG, res=None):
        """Logs a 'missing key' message, returns 'res'."""
        id  = oslg.trim(id)
        mth = oslg.trim(mth)
        ky  = oslg.trim(key)

        if not isinstance(dct, dict) or key in dct: return res
        if not id or not mth: return res

        self.log(lvl, "Missing '%s' key in %s (%s)" % (ky, id, mth))

        return res

    def empty(self, id="", mth="", lvl=oslg.CN.DEBUG, res=None):
        """Logs an 'empty' message, returns 'res'."""
        id  = oslg.trim(id)
        mth = oslg.trim(mth)

        if id and mth: self.log(lvl, "Empty '%s' (%s)" % (id, mth))

        return res

    def zero(self, id="", mth="", lvl=oslg.CN.DEBUG, res=None):
        """Logs a 'zero' message, returns 'res'."""
        id  = oslg.trim(id)
        mth = oslg.trim(mth)

        if id and mth: self.log(lvl, "Zero '%s' (%s)" % (id, mth))

        return res

    def negative(self, id="", mth="", lvl=oslg.CN.DEBUG, res=None):
        """Logs a 'negative' message, returns 'res'."""
        id  = oslg.trim(id)
        mth = oslg.trim(mth)

        if id and mth: self.log(lvl, "Negative '%s' (%s)" % (id, mth))

        return res
