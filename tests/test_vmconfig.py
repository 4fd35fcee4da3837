#!/usr/bin/env python
""" Unit testing for VMConfig """
import unittest
from unittest import mock

from pyVmomi import vim # pylint: disable=no-name-in-module
from vcops.vmconfig import VMConfig
from tests.fakes import virtual_machine

class TestDeviceSpecs(unittest.TestCase):
    """ SCSI controller and disk specs. """

    def test_scsi_config(self):
        """ New paravirtual controller with a temporary key """
        key, scsi = VMConfig.scsi_config(2)
        self.assertEqual(key, -103)
        self.assertEqual(scsi.operation, 'add')
        self.assertIsInstance(scsi.device, vim.vm.device.ParaVirtualSCSIController)
        self.assertEqual(scsi.device.key, -103)
        self.assertEqual(scsi.device.busNumber, 2)
        self.assertEqual(scsi.device.sharedBus, 'noSharing')

    def test_scsi_config_lsilogicsas(self):
        """ Controller type is selectable """
        _, scsi = VMConfig.scsi_config(1, controller_type='lsilogicsas')
        self.assertIsInstance(scsi.device, vim.vm.device.VirtualLsiLogicSASController)

        with self.assertRaises(ValueError):
            VMConfig.scsi_config(1, controller_type='buslogic')

    def test_disk_config_thin(self):
        """ Thin disk on an existing controller """
        disk = VMConfig.disk_config(
            datastore='ds1', size=10 * 1024 * 1024, controller=1000, unit=3
        )
        self.assertEqual(disk.operation, 'add')
        self.assertEqual(disk.fileOperation, 'create')
        self.assertEqual(disk.device.capacityInKB, 10485760)
        self.assertEqual(disk.device.controllerKey, 1000)
        self.assertEqual(disk.device.unitNumber, 3)
        self.assertEqual(disk.device.backing.fileName, '[ds1]')
        self.assertEqual(disk.device.backing.diskMode, 'persistent')
        self.assertTrue(disk.device.backing.thinProvisioned)
        self.assertFalse(disk.device.backing.eagerlyScrub)

    def test_disk_config_eager(self):
        """ Eager zeroed disks are never thin """
        disk = VMConfig.disk_config(
            datastore='ds1', size=1024, controller=-102, unit=0, thin=True, eager=True
        )
        self.assertFalse(disk.device.backing.thinProvisioned)
        self.assertTrue(disk.device.backing.eagerlyScrub)

    def test_disk_config_datastore(self):
        """ The datastore object is looked up in the container """
        datastore = vim.Datastore('datastore-1')
        with mock.patch('vcops.vmconfig.Query.get_obj', return_value=datastore) as get_obj:
            disk = VMConfig.disk_config(
                container=['ds'], datastore='ds1', size=1024, controller=1000, unit=1
            )
        get_obj.assert_called_once_with(['ds'], 'ds1')
        self.assertEqual(disk.device.backing.datastore, datastore)


class TestPower(unittest.TestCase):
    """ Reconfigure and power changes. """

    def setUp(self):
        self.vmcfg = VMConfig()
        self.host = virtual_machine()

    @mock.patch('vcops.vmconfig.Tasks.task_monitor', return_value=True)
    def test_reconfig(self, task_monitor):
        """ ConfigSpec is built from the keyword arguments """
        self.assertTrue(self.vmcfg.reconfig(self.host, deviceChange=[]))
        spec = self.host.ReconfigVM_Task.call_args[0][0]
        self.assertIsInstance(spec, vim.vm.ConfigSpec)
        task_monitor.assert_called_once_with(
            self.host.ReconfigVM_Task.return_value, True, self.host
        )

    @mock.patch('vcops.vmconfig.Tasks.task_monitor', return_value=False)
    def test_power_task_states(self, task_monitor):
        """ on, off and reset are monitored tasks """
        self.assertFalse(self.vmcfg.power(self.host, 'on'))
        self.assertFalse(self.vmcfg.power(self.host, 'off'))
        self.assertFalse(self.vmcfg.power(self.host, 'reset'))
        self.host.PowerOn.assert_called_once_with()
        self.host.PowerOff.assert_called_once_with()
        self.host.Reset.assert_called_once_with()
        self.assertEqual(task_monitor.call_count, 3)

    def test_power_guest_states(self):
        """ reboot and shutdown go through the guest """
        self.assertTrue(self.vmcfg.power(self.host, 'reboot'))
        self.assertTrue(self.vmcfg.power(self.host, 'shutdown'))
        self.host.RebootGuest.assert_called_once_with()
        self.host.ShutdownGuest.assert_called_once_with()

    def test_power_unknown(self):
        """ Unknown power state """
        with self.assertRaises(ValueError):
            self.vmcfg.power(self.host, 'suspend')

    def test_shutdown_powered_off(self):
        """ Nothing to do """
        host = virtual_machine(power_state='poweredOff')
        self.assertTrue(self.vmcfg.shutdown(host))
        host.ShutdownGuest.assert_not_called()
        host.PowerOff.assert_not_called()

    @mock.patch('vcops.vmconfig.Tasks.wait_for_power_state', return_value=True)
    def test_shutdown_guest(self, wait):
        """ Guest shutdown with tools running """
        self.host.guest.toolsRunningStatus = 'guestToolsRunning'
        self.assertTrue(self.vmcfg.shutdown(self.host, 60, 1))
        self.host.ShutdownGuest.assert_called_once_with()
        self.host.PowerOff.assert_not_called()
        wait.assert_called_once_with(self.host, 'poweredOff', 60, 1)

    @mock.patch('vcops.vmconfig.Tasks.wait_for_power_state', return_value=True)
    @mock.patch('vcops.vmconfig.Tasks.task_monitor', return_value=True)
    def test_shutdown_without_tools(self, _task_monitor, _wait):
        """ Power off without tools """
        self.host.guest.toolsRunningStatus = 'guestToolsNotRunning'
        self.assertTrue(self.vmcfg.shutdown(self.host))
        self.host.PowerOff.assert_called_once_with()
        self.host.ShutdownGuest.assert_not_called()

    @mock.patch('vcops.vmconfig.Tasks.task_monitor', return_value=False)
    def test_shutdown_power_off_failed(self, _task_monitor):
        """ Failed power off """
        self.host.guest.toolsRunningStatus = 'guestToolsNotRunning'
        with self.assertRaises(ValueError):
            self.vmcfg.shutdown(self.host)


if __name__ == '__main__':
    unittest.main()
