#!/usr/bin/env python
# vim: ts=4 sw=4 et
"""Wrappers that reconfigure and power Virtual Machines."""

from pyVmomi import vim # pylint: disable=no-name-in-module
from vcops.auth import check_session
from vcops.diskslots import DiskSlots
from vcops.query import Query
from vcops.vmconfig import VMConfig
from vcops import Logger

class VMConfigHelper(VMConfig, Logger):
    """Wrappers that reconfigure and power Virtual Machines."""
    def __init__(self, auth, opts, dotrc=None):
        self.auth = auth
        self.opts = opts
        self.dotrc = dotrc or {}
        self._virtual_machines = None

    @property
    @check_session
    def virtual_machines(self):
        """ ContainerView of every VirtualMachine, created on first use. """
        if self._virtual_machines is None:
            self._virtual_machines = Query.create_container(
                self.auth.session, self.auth.session.content.rootFolder,
                [vim.VirtualMachine], True
            )
        return self._virtual_machines

    def disk_plan(self, host, sizes, buses=None):
        """
        Method places each new disk on a controller and unit number.

        Args:
            host (obj):   VirtualMachine object
            sizes (list): Size of each new disk in GB
            buses (list): SCSI bus numbers to fill, in order.

        Returns:
            plan (list): A dict per disk with size, bus, unit and whether the
                controller needs to be created.
        """
        controllers = Query.get_controllers(host)
        used = Query.get_used_slots(host)
        slots = DiskSlots(buses).assign(len(sizes), used)

        plan = []
        for num, (size, (bus, unit)) in enumerate(zip(sizes, slots), start=1):
            plan.append({
                'disk' : num,
                'size' : int(size),
                'bus' : bus,
                'unit' : unit,
                'new_controller' : bus not in controllers,
            })

        return plan

    def disk_devices(self, host, plan, datastore, **kwargs):
        """
        Method converts a disk plan into device specs.  Each missing
        controller is added once, before the disks that use it.

        Args:
            host (obj):      VirtualMachine object
            plan (list):     Output of disk_plan
            datastore (str): Name of the datastore for the new disks

        Kwargs:
            thin (bool):            Thin provision the disks
            eager (bool):           Eagerly zero the disks
            controller_type (str):  Type used for new controllers

        Returns:
            devices (list): VirtualDeviceSpec objects for deviceChange
        """
        thin = kwargs.get('thin', True)
        eager = kwargs.get('eager', False)
        controller_type = kwargs.get('controller_type', 'paravirtual')

        controllers = Query.get_controllers(host)
        keys = dict((bus, ctrl.key) for bus, ctrl in controllers.items())
        devices = []

        for item in plan:
            if item['bus'] not in keys:
                key, scsi = self.scsi_config(item['bus'], controller_type=controller_type)
                keys.update({item['bus'] : key})
                devices.append(scsi)

            disk_cfg_opts = {}
            disk_cfg_opts.update(
                {
                    'container' : host.runtime.host.datastore,
                    'datastore' : datastore,
                    # KB
                    'size' : item['size'] * (1024*1024),
                    'controller' : keys[item['bus']],
                    'unit' : item['unit'],
                    'thin' : thin,
                    'eager' : eager,
                }
            )
            devices.append(self.disk_config(**disk_cfg_opts))

        return devices

    def add_disks(self, name, sizes, **kwargs):
        """
        Wrapper method for adding multiple disks to a VM.  Unless hot_add is
        set, a running VM is shut down for the change and powered on after.

        Args:
            name (str):   Name of the VM in vCenter.
            sizes (list): Size of each new disk in GB.

        Kwargs:
            buses (list):           SCSI bus numbers to fill.
            datastore (str):        Datastore for the disks, defaults to the
                datastore of the vmx file.
            thin (bool):            Thin provision the disks.
            eager (bool):           Eagerly zero the disks.
            controller_type (str):  Type used for new controllers.
            hot_add (bool):         Skip the shutdown.
            power_on (bool):        Power the VM on after the change if it was on.
            dry_run (bool):         Only return the plan.
            timeout (int):          Seconds to wait for the guest shutdown.
            interval (int):         Seconds between power state polls.

        Returns:
            plan (list): The placement of each disk.
        """
        buses = kwargs.get('buses', None)
        datastore = kwargs.get('datastore', None)
        hot_add = kwargs.get('hot_add', False)
        power_on = kwargs.get('power_on', True)
        dry_run = kwargs.get('dry_run', False)
        timeout = kwargs.get('timeout', 300)
        interval = kwargs.get('interval', 5)

        host = Query.get_obj(self.virtual_machines.view, name)

        if not datastore:
            datastore = Query.vm_datastore(host)

        plan = self.disk_plan(host, sizes, buses)
        for item in plan:
            item.update({'datastore' : datastore})

        self.logger.info(
            '%s disks: %s', host.name,
            ' '.join('%sGB@%s:%s' % (i['size'], i['bus'], i['unit']) for i in plan)
        )

        if dry_run:
            return plan

        devices = self.disk_devices(
            host, plan, datastore,
            thin=kwargs.get('thin', True),
            eager=kwargs.get('eager', False),
            controller_type=kwargs.get('controller_type', 'paravirtual'),
        )

        was_on = host.runtime.powerState == 'poweredOn'

        if was_on and not hot_add:
            print('%s shutting down for disk changes' % (host.name))
            self.shutdown(host, timeout, interval)

        if not self.reconfig(host, **{'deviceChange': devices}):
            raise ValueError('%s reconfigure failed, disks not added' % (host.name))

        if was_on and not hot_add and power_on:
            print('%s powering on' % (host.name))
            if not self.power(host, 'on'):
                raise ValueError('%s disks added but power on failed' % (host.name))

        return plan

    def power_wrapper(self, state, *names):
        """
        Wrapper method for changing the power state on multiple VMs.

        Args:
            state (str): choices: on, off, reset, reboot, shutdown
            names (str): a tuple of VM names in vCenter.
        """
        for name in names:
            host = Query.get_obj(self.virtual_machines.view, name)
            print('%s changing power state to %s' % (name, state))
            self.power(host, state)
