#!/usr/bin/env python
# vim: ts=4 sw=4 et
"""Security baseline audit for hosts and guests."""

from pyVmomi import vim # pylint: disable=no-name-in-module
from vcops.auth import check_session
from vcops.query import Query
from vcops import Logger

NOT_SET = '<not set>'

class Audit(Logger):
    """
    Compares live host and guest configuration against a table of expected
    values and reports PASS or FAIL for every setting.

    An expected value may be a list, in which case any of its items passes.
    """
    header = ['Scope', 'Object', 'Setting', 'Expected', 'Actual', 'Result']

    host_settings = {
        'UserVars.ESXiShellInteractiveTimeOut' : 900,
        'UserVars.ESXiShellTimeOut' : 600,
        'UserVars.DcuiTimeOut' : 600,
        'UserVars.SuppressShellWarning' : 0,
        'Security.AccountLockFailures' : 5,
        'Security.AccountUnlockTime' : 900,
        'Security.PasswordHistory' : 5,
        'Config.HostAgent.plugins.solo.enableMob' : False,
        'Config.HostAgent.log.level' : 'info',
        'DCUI.Access' : 'root',
        'Mem.ShareForceSalting' : 2,
        'Net.BlockGuestBPDU' : 1,
    }

    # service key: expected running state/startup policy
    host_services = {
        'TSM-SSH' : 'stopped/off',
        'TSM' : 'stopped/off',
    }

    host_lockdown = ['lockdownNormal', 'lockdownStrict']

    guest_settings = {
        'isolation.tools.copy.disable' : True,
        'isolation.tools.paste.disable' : True,
        'isolation.tools.dnd.disable' : True,
        'isolation.tools.setGUIOptions.enable' : False,
        'isolation.tools.diskShrink.disable' : True,
        'isolation.tools.diskWiper.disable' : True,
        'isolation.device.connectable.disable' : True,
        'RemoteDisplay.maxConnections' : 1,
        'RemoteDisplay.vnc.enabled' : False,
        'tools.setInfo.sizeLimit' : 1048576,
        'tools.guestlib.enableHostInfo' : False,
        'log.keepOld' : 10,
        'log.rotateSize' : 2048000,
        'mks.enable3d' : False,
    }

    def __init__(self, auth, host_settings=None, guest_settings=None):
        """
        Args:
            auth (obj):            Auth object with a session
            host_settings (dict):  Overrides or additions to the host table
            guest_settings (dict): Overrides or additions to the guest table
        """
        self.auth = auth
        self.host_settings = dict(Audit.host_settings, **(host_settings or {}))
        self.guest_settings = dict(Audit.guest_settings, **(guest_settings or {}))

    @staticmethod
    def normalize(value):
        """ Returns the comparable string form of a setting value. """
        if value is None:
            return None
        if isinstance(value, bool):
            return str(value).lower()

        return str(value).strip().lower()

    @classmethod
    def compare(cls, expected, actual):
        """
        Returns True if the actual value satisfies the expected value.

        Args:
            expected (obj): A value or a list of accepted values
            actual (obj):   The live value, None if it is not set
        """
        if actual is None:
            return False

        if not isinstance(expected, (list, tuple)):
            expected = [expected]

        return cls.normalize(actual) in [cls.normalize(item) for item in expected]

    @classmethod
    def display(cls, value):
        """ Returns a value for the report. """
        if value is None:
            return NOT_SET
        if isinstance(value, (list, tuple)):
            return '|'.join(str(item) for item in value)

        return str(value)

    @classmethod
    def row(cls, scope, name, setting, expected, actual, result=None):
        """ Returns a report row. """
        if result is None:
            result = cls.compare(expected, actual)

        return [
            scope, name, setting, cls.display(expected), cls.display(actual),
            'PASS' if result else 'FAIL'
        ]

    @classmethod
    def advanced_option(cls, host, key):
        """
        Returns the value of a host advanced option, None if the option does
        not exist on the host.
        """
        try:
            options = host.configManager.advancedOption.QueryOptions(key)
        except vim.fault.InvalidName:
            cls.logger.debug('%s %s not found', host.name, key)
            return None

        if not options:
            return None

        return options[0].value

    def audit_host(self, host):
        """
        Method audits advanced settings, services and lockdown mode of a host.

        Args:
            host (obj): HostSystem object

        Returns:
            rows (list): Report rows
        """
        rows = []

        for key, expected in self.host_settings.items():
            actual = self.advanced_option(host, key)
            rows.append(self.row('Host', host.name, key, expected, actual))

        services = dict(
            (svc.key, svc) for svc in host.configManager.serviceSystem.serviceInfo.service
        )
        for key, expected in self.host_services.items():
            svc = services.get(key, None)
            if not svc:
                rows.append(self.row('Host', host.name, key, expected, 'not installed', True))
                continue
            actual = '%s/%s' % ('running' if svc.running else 'stopped', svc.policy)
            rows.append(self.row('Host', host.name, key, expected, actual))

        rows.append(
            self.row(
                'Host', host.name, 'LockdownMode', self.host_lockdown,
                getattr(host.config, 'lockdownMode', None)
            )
        )

        return rows

    def audit_guest(self, virtmachine):
        """
        Method audits the advanced settings (extraConfig) of a VM.

        Args:
            virtmachine (obj): VirtualMachine object

        Returns:
            rows (list): Report rows
        """
        extra = dict((opt.key, opt.value) for opt in virtmachine.config.extraConfig)

        return [
            self.row('VM', virtmachine.name, key, expected, extra.get(key, None))
            for key, expected in self.guest_settings.items()
        ]

    @check_session
    def targets(self, clusters=None, hosts=None, vms=None):
        """
        Method resolves the hosts and VMs to audit.  Named hosts and VMs are
        used as given, otherwise everything inside the named clusters, or the
        whole inventory.  Named hosts without named VMs limit the VMs to the
        ones on those hosts.

        Returns:
            targets (tuple): A list of HostSystem and a list of VirtualMachine
        """
        root = self.auth.session.content.rootFolder

        if clusters:
            container = Query.create_container(
                self.auth.session, root, [vim.ComputeResource], True
            )
            cluster_objs = Query.get_objs(container.view, *clusters)
            host_objs = [host for cluster in cluster_objs for host in cluster.host]
            vm_objs = [vm for host in host_objs for vm in host.vm]
        else:
            host_objs = list(
                Query.create_container(self.auth.session, root, [vim.HostSystem], True).view
            )
            vm_objs = list(
                Query.create_container(self.auth.session, root, [vim.VirtualMachine], True).view
            )

        if hosts:
            host_objs = [Query.get_obj(host_objs, name) for name in hosts]
            if not vms:
                vm_objs = [vm for host in host_objs for vm in host.vm]
        if vms:
            vm_objs = [Query.get_obj(vm_objs, name) for name in vms]

        return (
            sorted(host_objs, key=lambda x: x.name),
            sorted(vm_objs, key=lambda x: x.name)
        )

    def report(self, scope='all', clusters=None, hosts=None, vms=None, failed_only=False):
        """
        Method builds the audit report.

        Args:
            scope (str):        host, guest or all
            clusters (list):    Limit to hosts and VMs of these clusters
            hosts (list):       Limit to these hosts
            vms (list):         Limit to these VMs
            failed_only (bool): Only return failures

        Returns:
            rows (list): Report rows
        """
        host_objs, vm_objs = self.targets(clusters, hosts, vms)
        rows = []

        if scope in ('host', 'all'):
            for host in host_objs:
                if host.runtime.connectionState != 'connected':
                    self.logger.info('%s %s skipped', host.name, host.runtime.connectionState)
                    continue
                rows.extend(self.audit_host(host))

        if scope in ('guest', 'all'):
            for virtmachine in vm_objs:
                if not virtmachine.config or virtmachine.config.template:
                    self.logger.info('%s template skipped', virtmachine.name)
                    continue
                rows.extend(self.audit_guest(virtmachine))

        failed = len([row for row in rows if row[-1] == 'FAIL'])
        self.logger.info('audit pass: %s fail: %s', len(rows) - failed, failed)

        if failed_only:
            return [row for row in rows if row[-1] == 'FAIL']

        return rows
