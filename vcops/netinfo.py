#!/usr/bin/env python
# vim: ts=4 sw=4 et
"""Physical switch and port discovery for host network adapters."""

from pyVmomi import vim # pylint: disable=no-name-in-module
from vcops.auth import check_session
from vcops.query import Query
from vcops import Logger

class NetInfo(Logger):
    """
    Reports the CDP or LLDP neighbor of every physical NIC.  CDP is used when
    the switch announces it, LLDP otherwise.
    """
    header = [
        'Host', 'Device', 'MAC', 'Speed', 'Protocol', 'Switch', 'Port', 'Address',
        'VLAN', 'Platform'
    ]

    def __init__(self, auth):
        self.auth = auth

    @staticmethod
    def lldp_params(lldp):
        """ Returns the LLDP key/value parameters as a dict. """
        return dict((param.key, param.value) for param in (lldp.parameter or []))

    @classmethod
    def neighbor(cls, hint):
        """
        Method returns the neighbor details from a network hint.

        Args:
            hint (obj): vim.host.PhysicalNic.NetworkHint

        Returns:
            neighbor (dict): protocol, switch, port, address, vlan and platform
        """
        cdp = getattr(hint, 'connectedSwitchPort', None)
        lldp = getattr(hint, 'lldpInfo', None)

        if cdp and cdp.devId:
            return {
                'protocol' : 'CDP',
                'switch' : cdp.devId,
                'port' : cdp.portId,
                'address' : cdp.mgmtAddr or cdp.address,
                'vlan' : cdp.vlan,
                'platform' : cdp.hardwarePlatform,
            }

        if lldp:
            params = cls.lldp_params(lldp)
            return {
                'protocol' : 'LLDP',
                'switch' : params.get('System Name', lldp.chassisId),
                'port' : params.get('Port Description', lldp.portId),
                'address' : params.get('Management Address', None),
                'vlan' : params.get('Vlan ID', None),
                'platform' : params.get('System Description', None),
            }

        return {
            'protocol' : 'none', 'switch' : None, 'port' : None, 'address' : None,
            'vlan' : None, 'platform' : None,
        }

    @classmethod
    def link_speed(cls, pnic):
        """ Returns the link speed of a physical NIC, down if there is no link. """
        if not pnic.linkSpeed:
            return 'down'

        return '%s Mb %s' % (
            pnic.linkSpeed.speedMb, 'full' if pnic.linkSpeed.duplex else 'half'
        )

    def host_hints(self, host, devices=None):
        """
        Method queries the network hints of a host.

        Args:
            host (obj):     HostSystem object
            devices (list): Limit to these vmnic names

        Returns:
            rows (list): Report rows
        """
        network_system = host.configManager.networkSystem
        pnics = dict((pnic.device, pnic) for pnic in network_system.networkInfo.pnic)

        if devices:
            missing = [device for device in devices if device not in pnics]
            if missing:
                raise ValueError('%s not found on %s' % (','.join(missing), host.name))
            hints = network_system.QueryNetworkHint(device=list(devices))
        else:
            hints = network_system.QueryNetworkHint()

        rows = []
        for hint in sorted(hints, key=lambda x: x.device):
            pnic = pnics.get(hint.device, None)
            neighbor = self.neighbor(hint)
            rows.append([
                host.name, hint.device,
                pnic.mac if pnic else None,
                self.link_speed(pnic) if pnic else None,
                neighbor['protocol'], neighbor['switch'], neighbor['port'],
                neighbor['address'], neighbor['vlan'], neighbor['platform'],
            ])
            self.logger.debug('%s %s %s', host.name, hint.device, neighbor)

        return rows

    @check_session
    def report(self, clusters=None, hosts=None, devices=None):
        """
        Method builds the network discovery report.

        Args:
            clusters (list): Limit to hosts of these clusters
            hosts (list):    Limit to these hosts
            devices (list):  Limit to these vmnic names

        Returns:
            rows (list): Report rows
        """
        root = self.auth.session.content.rootFolder

        if clusters:
            container = Query.create_container(
                self.auth.session, root, [vim.ComputeResource], True
            )
            host_objs = [
                host for cluster in Query.get_objs(container.view, *clusters)
                for host in cluster.host
            ]
        else:
            host_objs = list(
                Query.create_container(self.auth.session, root, [vim.HostSystem], True).view
            )

        if hosts:
            host_objs = [Query.get_obj(host_objs, name) for name in hosts]

        rows = []
        for host in sorted(host_objs, key=lambda x: x.name):
            if host.runtime.connectionState != 'connected':
                self.logger.info('%s %s skipped', host.name, host.runtime.connectionState)
                continue
            rows.extend(self.host_hints(host, devices))

        return rows
