#!/usr/bin/env python
# vim: ts=4 sw=4 et
"""Controller and unit number placement for new virtual disks."""
from vcops import Logger

class DiskSlots(Logger):
    """
    Assigns new disks to SCSI controllers and unit numbers.

    The slot table holds every (bus, unit) pair for the requested buses. It is
    ordered by unit first and then by bus, so consecutive disks are spread
    across controllers:

        disk 0 -> (0, 0), disk 1 -> (1, 0), disk 2 -> (2, 0), disk 3 -> (3, 0),
        disk 4 -> (0, 1), ...

    Unit 7 belongs to the controller itself and is never handed out. Slots
    already in use on the VM are skipped.
    """
    buses = (0, 1, 2, 3)
    units = 16
    reserved_units = (7,)

    def __init__(self, buses=None):
        """
        Args:
            buses (list): SCSI bus numbers that may receive disks, in the
                order they should be filled. Defaults to all four.
        """
        self.buses = tuple(buses) if buses else self.buses

        for bus in self.buses:
            if bus not in DiskSlots.buses:
                raise ValueError('invalid scsi bus number %s' % (bus))

    def table(self):
        """
        Returns the full slot table without reserved units.

        Returns:
            slots (list): A list of (bus, unit) tuples.
        """
        return [
            (bus, unit) for unit in range(self.units) if unit not in self.reserved_units
            for bus in self.buses
        ]

    @property
    def maximum(self):
        """ Number of slots available on an empty VM. """
        return len(self.table())

    def free(self, used=None):
        """
        Returns the slots that are not in use.

        Args:
            used (set): (bus, unit) tuples already taken.
        """
        used = used or set()
        return [slot for slot in self.table() if slot not in used]

    def assign(self, count, used=None):
        """
        Method assigns a slot to each new disk.

        Args:
            count (int): Number of new disks.
            used (set):  (bus, unit) tuples already taken.

        Returns:
            slots (list): A list of (bus, unit) tuples, one per disk ordinal.
        """
        if count < 1:
            raise ValueError('at least one disk is required')

        free = self.free(used)

        if count > len(free):
            raise ValueError(
                '%s disks requested but only %s free slots on scsi bus %s' % (
                    count, len(free), ','.join(str(bus) for bus in self.buses)
                )
            )

        slots = free[:count]
        self.logger.debug('placement %s', slots)
        return slots
