#!/usr/bin/env python
# vim: ts=4 sw=4 et
"""Class for handling argparse parsers. Methods are configured as subparsers."""
import argparse
import copy
import os
import textwrap
import yaml
from vcops import Logger, __version__
from vcops.diskslots import DiskSlots
from vcops.report import Report
# pylint: disable=empty-docstring,missing-docstring

class ArgParser(Logger):
    """Argparser class. It handles the user inputs and config files."""
    # subparsers that print reports
    report_cmds = ['capacity', 'audit', 'netinfo', 'disk']

    def __init__(self):
        self.parser = argparse.ArgumentParser(
            prog='vcops', description='vcenter operations cli'
        )
        self.parser.add_argument(
            '--version', '-v', action='version',
            version=__version__,
            help='version number'
        )
        self.subparsers = self.parser.add_subparsers(metavar='')

        self.opts = None
        self.dotrc = None

    def __call__(self, **dotrc):
        """
        Load the argparse parsers with the option for a dotrc override.

        Args:
            dotrc (dict): A dict were key is the argparse subparser and its
                val are the argument overrides.
        """
        self.dotrc = dotrc

        # parent_parsers are accessible to all subparsers
        parent_parsers = ['general', 'logging', 'output']
        parents = {}

        # subparsers are methods that create positional arguments
        subparsers = ['connect', 'capacity', 'audit', 'netinfo', 'disk', 'power']

        # load parsers and subparsers and override with dotrc dict
        for parent in parent_parsers:
            parents[parent] = getattr(self, parent)(**self.dotrc.get(parent, None) or {})

        for parser in subparsers:
            selected = [parents['general'], parents['logging']]
            if parser in self.report_cmds:
                selected.append(parents['output'])
            getattr(self, parser)(*selected, **self.dotrc.get(parser, None) or {})

    @classmethod
    def dict_merge(cls, first, second):
        """
        Method deep merges two dictionaries of unknown value types and
        depth.

        Args:
            first (dict): The first dictionary
            second (dict): The second dictionary

        Returns:
            new (dict): A new dictionary that is a merge of the first and
                second
        """

        # deep copy the first to maintain it's structure
        new = copy.deepcopy(first)

        for key, value in second.items():
            if key in new and isinstance(new[key], dict) and isinstance(value, dict):
                new[key] = cls.dict_merge(new[key], value)
            else:
                new[key] = copy.deepcopy(value)

        return new

    @classmethod
    def load_rc(cls, *rc_files):
        """
        Method reads yaml rc files and merges them in order.  Files that do not
        exist are skipped.

        Args:
            rc_files (str): Paths of rc files

        Returns:
            dotrc (dict): The merged config
        """
        dotrc = {}

        for rc_file in rc_files:
            try:
                with open(os.path.expanduser(rc_file)) as stream:
                    cfg = yaml.safe_load(stream)
            except IOError:
                # if it does not exist, then skip it
                continue

            if cfg:
                if not isinstance(cfg, dict):
                    raise ValueError('%s is not a valid rc file' % (rc_file))
                dotrc = cls.dict_merge(dotrc, cfg)

        return dotrc

    @staticmethod
    def _mkdict(args):
        """
        Internal method for converting an argparse string key=value into dict.
        It passes each value through a for loop to correctly set its type,
        otherwise it returns it as a string.

        Example:
            key1=val1,key2=val2,key3=val3
        """
        try:
            params = dict(x.split('=', 1) for x in args.split(','))
        except ValueError:
            raise argparse.ArgumentTypeError('format: key=val,keyN=valN')

        for key, value in params.items():
            if params[key].isdigit():
                params[key] = int(value)
            else:
                if params[key] == 'True':
                    params[key] = True
                elif params[key] == 'False':
                    params[key] = False

        return params

    @classmethod
    def general(cls, **defaults):

        # general (parent)
        general_parser = argparse.ArgumentParser(add_help=False)

        general_parser.add_argument(
            'vcenter',
            help='vcenter fqdn'
        )

        genopts = general_parser.add_argument_group('general options')

        genopts.add_argument(
            '--passwd-file', metavar='',
            help='gpg encrypted passwd file'
        )

        genopts.add_argument(
            '--user', metavar='',
            help='username'
        )

        genopts.add_argument(
            '--domain', metavar='',
            help='domain'
        )

        genopts.add_argument(
            '--passwd', metavar='',
            help='password'
        )

        genopts.add_argument(
            '--port', metavar='', type=int, default=443,
            help='vcenter port. default: %(default)s'
        )

        genopts.add_argument(
            '--rcfile', metavar='',
            help='A custom config for vcops options'
        )

        if defaults:
            general_parser.set_defaults(**defaults)

        return general_parser

    @classmethod
    def logging(cls, **defaults):

        # logging (parent)
        logging_parser = argparse.ArgumentParser(add_help=False)

        logging_opts = logging_parser.add_argument_group('logging options')

        logging_opts.add_argument(
            '--level', metavar='', choices=['info', 'debug'], default='info',
            help='set logging level choices=[%(choices)s] default: %(default)s'
        )

        logging_opts.add_argument(
            '--console-level', metavar='', choices=['info', 'error', 'debug'], default='error',
            help='set console log level choices=[%(choices)s] default: %(default)s'
        )
        logging_opts.add_argument(
            '--console-stream', metavar='', choices=['stdout', 'stderr'], default='stderr',
            help='set console logging stream output choices=[%(choices)s] default: %(default)s'
        )

        logging_opts.add_argument(
            '--logfile', metavar='', default='~/.vcops.log',
            help='set logging path: %(default)s'
        )

        if defaults:
            logging_parser.set_defaults(**defaults)

        return logging_parser

    @classmethod
    def output(cls, **defaults):

        # output (parent)
        output_parser = argparse.ArgumentParser(add_help=False)

        output_opts = output_parser.add_argument_group('output options')

        output_opts.add_argument(
            '--format', metavar='', choices=Report.formats, default='table',
            help='report format choices=[%(choices)s] default: %(default)s'
        )

        output_opts.add_argument(
            '--output', metavar='',
            help='write the report to a file instead of stdout'
        )

        if defaults:
            output_parser.set_defaults(**defaults)

        return output_parser

    def connect(self, *parents, **defaults):

        usage = """
        ## connect
        help: vcops connect -h

        ### verify credentials and show server information
        vcops connect <vcenter> --user <user> --passwd-file <file.gpg>
        """
        connect_parser = self.subparsers.add_parser(
            'connect',
            parents=list(parents),
            formatter_class=argparse.RawDescriptionHelpFormatter,
            usage=textwrap.dedent(usage),
            help='to a server and show its information'
        )

        connect_parser.set_defaults(cmd='connect')

        if defaults:
            connect_parser.set_defaults(**defaults)

    def capacity(self, *parents, **defaults):

        usage = """
        ## capacity
        help: vcops capacity -h

        ### cpu allocation ratio of every cluster
        vcops capacity <vcenter>

        ### include every host and count powered off vms
        vcops capacity <vcenter> --cluster <name> --hosts --include-off
        """
        capacity_parser = self.subparsers.add_parser(
            'capacity',
            parents=list(parents),
            formatter_class=argparse.RawDescriptionHelpFormatter,
            usage=textwrap.dedent(usage),
            help='cpu allocation ratios of clusters and hosts'
        )

        capacity_parser.set_defaults(cmd='capacity')

        capacity_opts = capacity_parser.add_argument_group('capacity options')

        capacity_opts.add_argument(
            '--cluster', nargs='+', metavar='',
            help='vcenter computeresource. default: all'
        )

        capacity_opts.add_argument(
            '--hosts', action='store_true',
            help='add a row for every host.'
        )

        capacity_opts.add_argument(
            '--include-off', action='store_true',
            help='count vms that are not powered on.'
        )

        if defaults:
            capacity_parser.set_defaults(**defaults)

    def audit(self, *parents, **defaults):

        usage = """
        ## audit
        help: vcops audit -h

        ### audit hosts and guests against the security baseline
        vcops audit <vcenter> --format html --output audit.html

        ### only failures for the hosts of a cluster
        vcops audit <vcenter> --scope host --cluster <name> --failed-only

        ### override expected values
        vcops audit <vcenter> --host-settings Security.AccountLockFailures=3
        """
        audit_parser = self.subparsers.add_parser(
            'audit',
            parents=list(parents),
            formatter_class=argparse.RawDescriptionHelpFormatter,
            usage=textwrap.dedent(usage),
            help='host and guest security settings'
        )

        audit_parser.set_defaults(cmd='audit')

        audit_opts = audit_parser.add_argument_group('audit options')

        audit_opts.add_argument(
            '--scope', metavar='', choices=['host', 'guest', 'all'], default='all',
            help='what to audit choices=[%(choices)s] default: %(default)s'
        )

        audit_opts.add_argument(
            '--cluster', nargs='+', metavar='',
            help='limit to hosts and vms of these clusters.'
        )

        audit_opts.add_argument(
            '--host', nargs='+', metavar='',
            help='limit to these hosts.'
        )

        audit_opts.add_argument(
            '--vm', nargs='+', metavar='',
            help='limit to these vms.'
        )

        audit_opts.add_argument(
            '--failed-only', action='store_true',
            help='only report settings that failed.'
        )

        audit_opts.add_argument(
            '--host-settings', metavar='', type=self._mkdict,
            help='expected host advanced settings. format: key=val,keyN=valN'
        )

        audit_opts.add_argument(
            '--guest-settings', metavar='', type=self._mkdict,
            help='expected guest advanced settings. format: key=val,keyN=valN'
        )

        if defaults:
            audit_parser.set_defaults(**defaults)

    def netinfo(self, *parents, **defaults):

        usage = """
        ## netinfo
        help: vcops netinfo -h

        ### cdp / lldp neighbors of every physical nic
        vcops netinfo <vcenter> --cluster <name>

        ### selected nics of a host
        vcops netinfo <vcenter> --host <name> --device vmnic0 vmnic1
        """
        netinfo_parser = self.subparsers.add_parser(
            'netinfo',
            parents=list(parents),
            formatter_class=argparse.RawDescriptionHelpFormatter,
            usage=textwrap.dedent(usage),
            help='physical switch ports of host network adapters'
        )

        netinfo_parser.set_defaults(cmd='netinfo')

        netinfo_opts = netinfo_parser.add_argument_group('netinfo options')

        netinfo_opts.add_argument(
            '--cluster', nargs='+', metavar='',
            help='limit to hosts of these clusters.'
        )

        netinfo_opts.add_argument(
            '--host', nargs='+', metavar='',
            help='limit to these hosts.'
        )

        netinfo_opts.add_argument(
            '--device', nargs='+', metavar='',
            help='limit to these physical nics, i.e. vmnic0'
        )

        if defaults:
            netinfo_parser.set_defaults(**defaults)

    def disk(self, *parents, **defaults):

        usage = """
        ## disk
        help: vcops disk -h

        ### add three disks, spread over scsi controllers
        vcops disk <vcenter> <name> --sizeGB 100 100 50

        ### add disks on scsi 1-3 only, without changing anything
        vcops disk <vcenter> <name> --sizeGB 100 100 100 --bus 1 2 3 --dry-run

        ### add a disk to a running vm
        vcops disk <vcenter> <name> --sizeGB 20 --hot-add
        """
        disk_parser = self.subparsers.add_parser(
            'disk',
            parents=list(parents),
            formatter_class=argparse.RawDescriptionHelpFormatter,
            usage=textwrap.dedent(usage),
            help='add virtual disks to a virtual machine'
        )

        disk_parser.set_defaults(cmd='disk')

        disk_parser.add_argument(
            'name',
            help='name attribute of virtual machine object, i.e. hostname'
        )

        disk_opts = disk_parser.add_argument_group('disk options')

        disk_opts.add_argument(
            '--sizeGB', nargs='+', type=int, metavar='', required=True,
            help='size in GB of each new disk'
        )

        disk_opts.add_argument(
            '--bus', nargs='+', type=int, metavar='',
            help='scsi bus numbers to place disks on, in order. default: 0 1 2 3'
        )

        disk_opts.add_argument(
            '--datastore', metavar='',
            help='datastore for the new disks. default: datastore of the vm'
        )

        disk_opts.add_argument(
            '--controller-type', metavar='', default='paravirtual',
            choices=['paravirtual', 'lsilogicsas'],
            help='type of new scsi controllers choices=[%(choices)s] default: %(default)s'
        )

        disk_opts.add_argument(
            '--thick', action='store_true',
            help='thick provision the disks.'
        )

        disk_opts.add_argument(
            '--eager-zero', action='store_true',
            help='thick provision eager zeroed disks.'
        )

        power_opts = disk_parser.add_argument_group('power options')

        power_opts.add_argument(
            '--hot-add', action='store_true',
            help='add disks without shutting down the vm.'
        )

        power_opts.add_argument(
            '--no-power-on', action='store_true',
            help='leave the vm powered off after the change.'
        )

        power_opts.add_argument(
            '--shutdown-timeout', metavar='', type=int, default=300,
            help='seconds to wait for the guest to shutdown. default: %(default)s'
        )

        power_opts.add_argument(
            '--interval', metavar='', type=int, default=5,
            help='seconds between power state checks. default: %(default)s'
        )

        disk_parser.add_argument(
            '--dry-run', action='store_true',
            help='show the disk placement without changing the vm.'
        )

        if defaults:
            disk_parser.set_defaults(**defaults)

    def power(self, *parents, **defaults):
        usage = """
        ## power
        help: vcops power -h

        ### adjust power state
        vcops power <vcenter> <on|off|reset|reboot|shutdown> --name name nameN
        """
        power_parser = self.subparsers.add_parser(
            'power', parents=list(parents),
            usage=textwrap.dedent(usage),
            help='state of virtual machines'
        )

        power_parser.set_defaults(cmd='power')

        power_parser.add_argument(
            'power', choices=['on', 'off', 'reset', 'reboot', 'shutdown'],
            help='change power state of vm'

        )

        power_parser.add_argument(
            '--name', nargs='+', metavar='', required=True,
            help='name attribute of virtual machine object.'
        )

        if defaults:
            power_parser.set_defaults(**defaults)

    def sanitize(self, opts):
        """
        Sanitize arguments. This will override the user / config input to a supported state.

        Examples:
            - expand home directories
            - merge baseline overrides
            - validate disk sizes and bus numbers

        Args:
           opts (obj): argparse namespace parsed args
        """
        if not getattr(opts, 'cmd', None):
            self.parser.error('a command is required')

        for attr in ('logfile', 'passwd_file', 'output'):
            if getattr(opts, attr, None):
                setattr(opts, attr, os.path.expanduser(getattr(opts, attr)))

        # rc file and command line expected values are merged
        if opts.cmd == 'audit':
            audit_rc = (self.dotrc or {}).get('audit', None) or {}
            for attr in ('host_settings', 'guest_settings'):
                setattr(
                    opts, attr,
                    self.dict_merge(audit_rc.get(attr, None) or {}, getattr(opts, attr) or {})
                )

        if opts.cmd == 'disk':
            for size in opts.sizeGB:
                if size < 1:
                    self.parser.error('disk size must be at least 1 GB, not %s' % (size))
            if opts.bus:
                buses = []
                for bus in opts.bus:
                    if bus not in DiskSlots.buses:
                        self.parser.error('invalid scsi bus number %s' % (bus))
                    if bus not in buses:
                        buses.append(bus)
                opts.bus = buses

        return opts
