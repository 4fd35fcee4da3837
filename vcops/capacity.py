#!/usr/bin/env python
# vim: ts=4 sw=4 et
"""CPU allocation ratios for hosts and clusters."""

from pyVmomi import vim # pylint: disable=no-name-in-module
from vcops.auth import check_session
from vcops.query import Query
from vcops import Logger

class Capacity(Logger):
    """
    Reports allocated vCPUs against physical cores for every host and cluster.
    """
    header = ['Cluster', 'Host', 'Hosts', 'Cores', 'Threads', 'VMs', 'vCPUs', 'Ratio']

    def __init__(self, auth):
        self.auth = auth

    @staticmethod
    def ratio(vcpus, cores):
        """
        Returns the allocation ratio as text.

        Args:
            vcpus (int): Allocated virtual CPUs
            cores (int): Physical cores
        """
        if not cores:
            return 'n/a'

        return '{0:.2f}:1'.format(vcpus / cores)

    @classmethod
    def host_usage(cls, host, include_off=False):
        """
        Method counts the cores and allocated vCPUs of a single host.

        Args:
            host (obj):         HostSystem object
            include_off (bool): Count VMs that are not powered on.

        Returns:
            usage (dict): cores, threads, vms and vcpus of the host.
        """
        usage = {'cores' : 0, 'threads' : 0, 'vms' : 0, 'vcpus' : 0}

        if host.hardware:
            usage['cores'] = host.hardware.cpuInfo.numCpuCores
            usage['threads'] = host.hardware.cpuInfo.numCpuThreads

        for virtmachine in host.vm:
            config = virtmachine.config
            # config is unset while a vm is being created or is orphaned
            if not config or config.template:
                continue
            if not include_off and virtmachine.runtime.powerState != 'poweredOn':
                continue
            usage['vms'] += 1
            usage['vcpus'] += config.hardware.numCPU

        return usage

    @check_session
    def report(self, clusters=None, hosts=False, include_off=False):
        """
        Method builds the capacity report rows.

        Args:
            clusters (list):    Names of clusters, defaults to all.
            hosts (bool):       Add a row for every host.
            include_off (bool): Count VMs that are not powered on.

        Returns:
            rows (list): A list of rows matching header.
        """
        container = Query.create_container(
            self.auth.session, self.auth.session.content.rootFolder,
            [vim.ComputeResource], True
        )

        cluster_objs = Query.get_objs(container.view, *(clusters or []))
        if not clusters:
            cluster_objs.sort(key=lambda x: x.name)

        rows = []
        for cluster in cluster_objs:
            host_rows = []
            totals = {'hosts' : 0, 'cores' : 0, 'threads' : 0, 'vms' : 0, 'vcpus' : 0}

            for host in sorted(cluster.host, key=lambda x: x.name):
                state = host.runtime.connectionState
                if state != 'connected':
                    self.logger.info('%s %s skipped', host.name, state)
                    host_rows.append([cluster.name, host.name, '', '', '', '', '', state])
                    continue

                usage = self.host_usage(host, include_off)
                totals['hosts'] += 1
                for key, value in usage.items():
                    totals[key] += value

                host_rows.append([
                    cluster.name, host.name, '', usage['cores'], usage['threads'],
                    usage['vms'], usage['vcpus'], self.ratio(usage['vcpus'], usage['cores'])
                ])

            self.logger.info(
                '%s hosts: %s cores: %s vcpus: %s', cluster.name,
                totals['hosts'], totals['cores'], totals['vcpus']
            )
            rows.append([
                cluster.name, '', totals['hosts'], totals['cores'], totals['threads'],
                totals['vms'], totals['vcpus'], self.ratio(totals['vcpus'], totals['cores'])
            ])

            if hosts:
                rows.extend(host_rows)

        return rows
