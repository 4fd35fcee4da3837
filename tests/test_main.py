#!/usr/bin/env python
""" Unit testing for the vcops command """
import argparse
import logging
import os
import shutil
import sys
import tempfile
import unittest
from unittest import mock

from pyVmomi import vim # pylint: disable=no-name-in-module
from vcops.argparser import ArgParser
from vcops.main import AddFilter, VCOps, run, setup_logging

def options(cmd, **kwargs):
    """ Parsed options for a command. """
    opts = {
        'cmd' : cmd, 'vcenter' : 'vc1', 'port' : 443, 'user' : 'admin', 'passwd' : 'secret',
        'domain' : None, 'passwd_file' : None, 'format' : 'table', 'output' : None,
    }
    opts.update(kwargs)
    return argparse.Namespace(**opts)


@mock.patch('vcops.main.Auth')
class TestVCOps(unittest.TestCase):
    """ Command dispatch and exit codes. """

    @mock.patch('vcops.main.Report')
    @mock.patch('vcops.main.Capacity')
    def test_capacity(self, capacity, report, auth):
        """ Report rows are written in the selected format """
        capacity.return_value.report.return_value = [['cl1']]
        opts = options(
            'capacity', cluster=None, hosts=True, include_off=False, format='csv',
            output='/tmp/capacity.csv'
        )

        self.assertEqual(VCOps(opts).main(), 0)

        auth.assert_called_once_with('vc1', 443)
        auth.return_value.login.assert_called_once_with('admin', 'secret', None, None)
        capacity.return_value.report.assert_called_once_with(None, True, False)
        report.assert_called_once_with(capacity.header, [['cl1']], 'CPU allocation ratio')
        report.return_value.write.assert_called_once_with('csv', '/tmp/capacity.csv')
        auth.return_value.logout.assert_called_once_with()
        self.assertIsNone(opts.passwd)

    @mock.patch('vcops.main.Report')
    @mock.patch('vcops.main.VMConfigHelper')
    def test_disk(self, helper, report, _auth):
        """ Placement rows """
        helper.return_value.add_disks.return_value = [{
            'disk' : 1, 'size' : 10, 'datastore' : 'ds1', 'bus' : 1, 'unit' : 0,
            'new_controller' : True,
        }]
        opts = options(
            'disk', name='vm1', sizeGB=[10], bus=None, datastore=None, thick=False,
            eager_zero=False, controller_type='paravirtual', hot_add=False,
            no_power_on=False, dry_run=True, shutdown_timeout=300, interval=5
        )

        VCOps(opts).main()

        helper.return_value.add_disks.assert_called_once_with(
            'vm1', [10], buses=None, datastore=None, thin=True, eager=False,
            controller_type='paravirtual', hot_add=False, power_on=True, dry_run=True,
            timeout=300, interval=5
        )
        self.assertEqual(report.call_args[0][1], [[1, 10, 'ds1', 1, 0, 'new']])

    @mock.patch('vcops.main.VMConfigHelper')
    def test_power(self, helper, _auth):
        """ Every named vm """
        VCOps(options('power', power='off', name=['vm1', 'vm2'])).main()
        helper.return_value.power_wrapper.assert_called_once_with('off', 'vm1', 'vm2')

    @mock.patch('vcops.main.Capacity')
    def test_value_error(self, capacity, auth):
        """ ValueError exits 3 after logout """
        capacity.return_value.report.side_effect = ValueError('cl9 not found.')
        opts = options('capacity', cluster=['cl9'], hosts=False, include_off=False)

        with self.assertRaises(SystemExit) as exit_code:
            VCOps(opts).main()

        self.assertEqual(exit_code.exception.code, 3)
        auth.return_value.logout.assert_called_once_with()

    @mock.patch('vcops.main.Capacity')
    def test_keyboard_interrupt(self, capacity, auth):
        """ Ctrl-C exits 1 after logout """
        capacity.return_value.report.side_effect = KeyboardInterrupt()
        opts = options('capacity', cluster=None, hosts=False, include_off=False)

        with self.assertRaises(SystemExit) as exit_code:
            VCOps(opts).main()

        self.assertEqual(exit_code.exception.code, 1)
        auth.return_value.logout.assert_called_once_with()

    def test_invalid_login(self, auth):
        """ InvalidLogin exits 2 """
        auth.return_value.login.side_effect = vim.fault.InvalidLogin()

        with self.assertRaises(SystemExit) as exit_code:
            VCOps(options('connect')).main()

        self.assertEqual(exit_code.exception.code, 2)


class TestLogging(unittest.TestCase):
    """ Log record attributes. """

    @mock.patch('vcops.main.getuser', return_value='jdoe')
    def test_username(self, _getuser):
        """ Every record carries the local username """
        record = logging.LogRecord('vcops', logging.INFO, __file__, 1, 'msg', None, None)
        self.assertTrue(AddFilter().filter(record))
        self.assertEqual(record.username, 'jdoe')

    def test_console(self):
        """ Console handler level and stream """
        tmpdir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, tmpdir)
        root = logging.getLogger()
        before = list(root.handlers)
        level = root.level

        def restore():
            for handler in root.handlers[:]:
                if handler not in before:
                    root.removeHandler(handler)
                    handler.close()
            for handler in before:
                handler.filters = [
                    flt for flt in handler.filters if not isinstance(flt, AddFilter)
                ]
            root.setLevel(level)
        self.addCleanup(restore)

        setup_logging(argparse.Namespace(
            level='debug', logfile=os.path.join(tmpdir, 'vcops.log'),
            console_level='info', console_stream='stdout'
        ))

        console = [
            handler for handler in root.handlers
            if handler not in before and type(handler) is logging.StreamHandler
        ]
        self.assertEqual(len(console), 1)
        self.assertEqual(console[0].level, logging.INFO)
        self.assertIs(console[0].stream, sys.stdout)
        self.assertTrue(
            all(any(isinstance(flt, AddFilter) for flt in handler.filters)
                for handler in root.handlers)
        )


class TestRun(unittest.TestCase):
    """ rc files and the command line. """

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.tmpdir)
        self.rcfile = os.path.join(self.tmpdir, 'site.yaml')
        with open(self.rcfile, 'w') as rc_file:
            rc_file.write('general:\n  port: 8443\n  user: svc\n')

    @mock.patch('vcops.main.setup_logging')
    @mock.patch('vcops.main.VCOps')
    def test_rcfile_merged_last(self, vcops, setup_logging_mock):
        """ --rcfile is read after the packaged and home rc files """
        with mock.patch('vcops.main.ArgParser.load_rc', wraps=ArgParser.load_rc) as load_rc:
            result = run(['connect', 'vc1', '--rcfile', self.rcfile])

        rc_files = load_rc.call_args[0]
        self.assertEqual(len(rc_files), 3)
        self.assertTrue(rc_files[0].endswith(os.path.join('vcops', 'vcopsrc.yaml')))
        self.assertEqual(rc_files[1], '~/.vcopsrc.yaml')
        self.assertEqual(rc_files[2], self.rcfile)

        opts, dotrc = vcops.call_args[0]
        self.assertEqual(opts.port, 8443)
        self.assertEqual(opts.user, 'svc')
        self.assertEqual(opts.cmd, 'connect')
        self.assertEqual(dotrc['general']['port'], 8443)
        setup_logging_mock.assert_called_once_with(opts)
        self.assertIs(result, vcops.return_value.main.return_value)

    @mock.patch('vcops.main.setup_logging')
    @mock.patch('vcops.main.VCOps')
    def test_without_rcfile(self, _vcops, _setup_logging):
        """ Packaged and home rc files only """
        with mock.patch('vcops.main.ArgParser.load_rc', wraps=ArgParser.load_rc) as load_rc:
            run(['connect', 'vc1'])

        self.assertEqual(len(load_rc.call_args[0]), 2)


if __name__ == '__main__':
    unittest.main()
