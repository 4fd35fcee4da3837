#!/usr/bin/env python
# vim: ts=4 sw=4 et
"""
vcops is a Python module using pyVmomi for routine vCenter operations:
capacity ratios, security baseline audits, physical network discovery and
adding virtual disks.
"""

import argparse
import logging
from getpass import getuser
import os
import sys
#
from pyVmomi import vim # pylint: disable=no-name-in-module
from vcops.argparser import ArgParser
from vcops.audit import Audit
from vcops.auth import Auth
from vcops.capacity import Capacity
from vcops.netinfo import NetInfo
from vcops.report import Report
from vcops.vmconfig_helper import VMConfigHelper
from vcops import Logger

class VCOps(Logger):
    """
    Main VCOps class.
    """

    def __init__(self, opts, dotrc=None):
        self.opts = opts
        self.dotrc = dotrc or {}
        self.auth = None

    def report(self, header, rows, title):
        """ Prints or writes the rows in the selected format. """
        Report(header, rows, title).write(self.opts.format, self.opts.output)

    def connect(self):
        """ Shows information about the connected server. """
        for key, value in sorted(self.auth.about().items()):
            print('{0:15} {1}'.format(key, value))

    def capacity(self):
        """ CPU allocation ratios. """
        rows = Capacity(self.auth).report(
            self.opts.cluster, self.opts.hosts, self.opts.include_off
        )
        self.report(Capacity.header, rows, 'CPU allocation ratio')

    def audit(self):
        """ Security baseline audit. """
        auditor = Audit(self.auth, self.opts.host_settings, self.opts.guest_settings)
        rows = auditor.report(
            self.opts.scope, self.opts.cluster, self.opts.host, self.opts.vm,
            self.opts.failed_only
        )
        self.report(Audit.header, rows, 'Security baseline audit')

    def netinfo(self):
        """ CDP / LLDP neighbors. """
        rows = NetInfo(self.auth).report(self.opts.cluster, self.opts.host, self.opts.device)
        self.report(NetInfo.header, rows, 'Physical network neighbors')

    def disk(self):
        """ Adds disks to a vm. """
        vmcfg = VMConfigHelper(self.auth, self.opts, self.dotrc)
        plan = vmcfg.add_disks(
            self.opts.name, self.opts.sizeGB,
            buses=self.opts.bus,
            datastore=self.opts.datastore,
            thin=not (self.opts.thick or self.opts.eager_zero),
            eager=self.opts.eager_zero,
            controller_type=self.opts.controller_type,
            hot_add=self.opts.hot_add,
            power_on=not self.opts.no_power_on,
            dry_run=self.opts.dry_run,
            timeout=self.opts.shutdown_timeout,
            interval=self.opts.interval,
        )
        rows = [
            [
                item['disk'], item['size'], item['datastore'], item['bus'], item['unit'],
                'new' if item['new_controller'] else 'existing'
            ] for item in plan
        ]
        self.report(
            ['Disk', 'SizeGB', 'Datastore', 'Bus', 'Unit', 'Controller'], rows,
            '%s disk placement' % (self.opts.name)
        )

    def power(self):
        """ Changes the power state of vms. """
        VMConfigHelper(self.auth, self.opts, self.dotrc).power_wrapper(
            self.opts.power, *self.opts.name
        )

    def main(self):
        """
        This is the main method, which logs in and runs the selected command.
        """

        try:

            self.auth = Auth(self.opts.vcenter, self.opts.port)
            self.auth.login(
                self.opts.user, self.opts.passwd, self.opts.domain, self.opts.passwd_file
            )

            self.opts.passwd = None
            self.logger.debug(self.opts)

            getattr(self, self.opts.cmd)()

            self.auth.logout()

        except ValueError as err:
            self.logger.error(err, exc_info=False)
            self.auth.logout()
            sys.exit(3)

        except vim.fault.InvalidLogin as loginerr:
            self.logger.error(loginerr.msg, exc_info=False)
            sys.exit(2)

        except KeyboardInterrupt as err:
            self.logger.error(err, exc_info=False)
            self.auth.logout()
            sys.exit(1)

        return 0


class AddFilter(logging.Filter):
    """
    Class adds attributes to logging that can be added to the logging format
    """
    def filter(self, record):
        # force username on logs
        record.username = getuser()
        return True


def setup_logging(options):
    """ Logs to the logfile and to the console. """
    log_level = options.level.upper()
    log_file = options.logfile
    log_format = '%(asctime)s %(username)s %(levelname)s %(module)s %(funcName)s %(message)s'

    logging.basicConfig(
        filename=log_file, level=getattr(logging, log_level), format=log_format
    )

    console_log_level = options.console_level.upper()
    console = logging.StreamHandler(stream=getattr(sys, options.console_stream))
    console.setLevel(getattr(logging, console_log_level))

    logging.getLogger().addHandler(console)

    for handler in logging.root.handlers:
        handler.addFilter(AddFilter())


def run(argv=None):
    """ Entry point for the vcops command. """
    vcops_dir = os.path.dirname(os.path.realpath(__file__))
    grouprc = os.path.join(vcops_dir, 'vcopsrc.yaml')
    homerc = '~/.vcopsrc.yaml'
    rc_files = [grouprc, homerc]

    # --rcfile has to be known before the parsers get their defaults
    pre_parser = argparse.ArgumentParser(add_help=False)
    pre_parser.add_argument('--rcfile')
    rcfile = pre_parser.parse_known_args(argv)[0].rcfile
    if rcfile:
        rc_files.append(rcfile)

    dotrc = ArgParser.load_rc(*rc_files)

    argparser = ArgParser()
    argparser(**dotrc)
    options = argparser.sanitize(argparser.parser.parse_args(argv))

    setup_logging(options)

    vco = VCOps(options, dotrc)
    return vco.main()


if __name__ == '__main__':
    sys.exit(run())
