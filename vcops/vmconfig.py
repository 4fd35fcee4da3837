#!/usr/bin/env python
# vim: ts=4 sw=4 et
"""Various config options for Virtual Machines."""

from pyVmomi import vim # pylint: disable=no-name-in-module
from vcops.query import Query
from vcops.tasks import Tasks
from vcops import Logger

class VMConfig(Logger):
    """
    Class builds device specs for existing VMs and manages their power state.
    It handles the addition of multiple disks attached to multiple SCSI
    controllers in a single reconfigure task.
    """

    controller_types = {
        'paravirtual' : 'ParaVirtualSCSIController',
        'lsilogicsas' : 'VirtualLsiLogicSASController',
    }

    @classmethod
    def scsi_key_for(cls, bus_number):
        """
        Temporary key for a controller that does not exist yet.  Negative keys
        let devices in the same ConfigSpec attach to the new controller.
        """
        return -101 - bus_number

    @classmethod
    def scsi_config(cls, bus_number=0, shared_bus='noSharing', controller_type='paravirtual'):
        """
        Method creates a SCSI Controller on the VM

        Args:
            bus_number (int): Bus number associated with this controller.
            shared_bus (str): Mode for sharing the SCSI bus.
                Valid Modes:
                    physicalSharing, virtualSharing, noSharing
            controller_type (str): paravirtual or lsilogicsas
        Returns:
            scsi (tuple): The temporary key and a configured object for a SCSI
                Controller.  the object should be appended to ConfigSpec
                devices attribute.
        """
        if controller_type not in cls.controller_types:
            raise ValueError('unsupported scsi controller type %s' % (controller_type))

        key = cls.scsi_key_for(bus_number)

        scsi = vim.vm.device.VirtualDeviceSpec()
        scsi.operation = 'add'

        scsi.device = getattr(vim.vm.device, cls.controller_types[controller_type])()
        scsi.device.key = key
        scsi.device.sharedBus = shared_bus
        scsi.device.busNumber = bus_number

        return (key, scsi)


    @classmethod
    def disk_config(cls, **kwargs):
        """
        Method returns configured VirtualDisk object

        Kwargs:
            container (list): Datastore objects to search for datastore.
            datastore (str):  Name of datastore for the disk files location.
            size (int):       Integer of disk in kilobytes
            controller (int): Key of the scsi controller
            unit (int):       unitNumber of device.
            mode (str):       The disk persistence mode.
            thin (bool):      If True, then it enables thin provisioning
            eager (bool):     If True, zero the disk when it is created

        Returns:
            disk (obj): A configured object for a VMDK Disk.  this should
                be appended to ConfigSpec devices attribute.
        """
        # capacityInKB is deprecated but also a required field. See pyVmomi bug #218

        container = kwargs.get('container', None)
        datastore = kwargs.get('datastore', None)
        size = kwargs.get('size', None)
        unit = kwargs.get('unit', 0)
        mode = kwargs.get('mode', 'persistent')
        thin = kwargs.get('thin', True)
        eager = kwargs.get('eager', False)
        controller = kwargs.get('controller', None)

        disk = vim.vm.device.VirtualDeviceSpec()
        disk.operation = 'add'
        disk.fileOperation = 'create'

        disk.device = vim.vm.device.VirtualDisk()
        disk.device.capacityInKB = size
        # controllerKey is tied to SCSI Controller
        disk.device.controllerKey = controller
        disk.device.unitNumber = unit
        disk.device.backing = vim.vm.device.VirtualDisk.FlatVer2BackingInfo()
        disk.device.backing.fileName = '[' + datastore + ']'
        if container is not None:
            disk.device.backing.datastore = Query.get_obj(container, datastore)
        disk.device.backing.diskMode = mode
        disk.device.backing.thinProvisioned = thin and not eager
        disk.device.backing.eagerlyScrub = eager

        return disk


    def reconfig(self, host, **config):
        """
        Method reconfigures a VM.

        Args:
            host (obj):    VirtualMachine object
            config (dict): A dictionary of vim.vm.ConfigSpec attributes and
                their values.
        Returns:
            result (bool): Result of task_monitor
        """

        self.logger.debug('%s %s', host.name, config)
        task = host.ReconfigVM_Task(vim.vm.ConfigSpec(**config))
        result = Tasks.task_monitor(task, True, host)
        return result


    def power(self, host, state):
        """
        Method manages power states.

        Args:
            host (obj):  VirtualMachine object
            state (str): options are: on, off, reset, reboot, shutdown
        """
        self.logger.info('%s %s', host.name, state)
        if state == 'off':
            return Tasks.task_monitor(host.PowerOff(), True, host)

        if state == 'on':
            return Tasks.task_monitor(host.PowerOn(), True, host)

        if state == 'reset':
            return Tasks.task_monitor(host.Reset(), True, host)

        if state == 'reboot':
            host.RebootGuest()
            return True

        if state == 'shutdown':
            host.ShutdownGuest()
            return True

        raise ValueError('unknown power state %s' % (state))


    def shutdown(self, host, timeout=300, interval=5):
        """
        Method powers off a VM before a cold change.  A guest shutdown is used
        when VMware Tools is running, otherwise the VM is powered off.

        Args:
            host (obj):     VirtualMachine object
            timeout (int):  Seconds to wait for the guest to power off
            interval (int): Seconds to sleep between polls
        Returns:
            result (bool): True once the VM is powered off
        """
        if host.runtime.powerState == 'poweredOff':
            return True

        if host.guest.toolsRunningStatus == 'guestToolsRunning':
            self.power(host, 'shutdown')
        else:
            self.logger.info('%s tools not running, powering off', host.name)
            if not self.power(host, 'off'):
                raise ValueError('%s failed to power off' % (host.name))

        return Tasks.wait_for_power_state(host, 'poweredOff', timeout, interval)
