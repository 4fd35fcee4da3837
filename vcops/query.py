#!/usr/bin/env python
# vim: ts=4 sw=4 et
"""Query class for vcops.  All methods that obtain info should go here."""
import re

from pyVmomi import vim # pylint: disable=no-name-in-module
from vcops import Logger

class Query(Logger):
    """
    Class handles queries for information regarding vms, hosts, clusters
    and their devices.
    """
    def __init__(self):
        pass

    @classmethod
    def disk_size_format(cls, num):
        """
        Method converts size in bytes to human readable format.

        Args:
            num (int): Number
        """

        for attr in ['bytes', 'KB', 'MB', 'GB', 'TB']:
            if num < 1024.0:
                return '%3.2f %s' % (num, attr)
            num /= 1024.0
        return None


    @classmethod
    def create_container(cls, s_instance, *args):
        """
        Wrapper method for creating managed objects inside vim.view.ViewManager.

        Args:
            s_instance (obj): ServiceInstance
            args(list):
        """
        if hasattr(s_instance, 'content'):
            if hasattr(s_instance.content, 'viewManager'):
                return s_instance.content.viewManager.CreateContainerView(*args)

        raise ValueError('unable to create container view, no valid session.')


    @classmethod
    def get_obj(cls, container, name):
        """
        Returns an object inside of ContainerView if it matches name.

        Args:
            container (obj):  Container object
            name (str):       Name of Container
        """

        for obj in container:
            if obj.name == name:
                return obj

        raise ValueError('%s not found.' % (name))


    @classmethod
    def get_objs(cls, container, *names):
        """
        Returns a list of objects inside of ContainerView.  If no names are
        given, then every object is returned.

        Args:
            container (obj):  Container object
            names (str):      Names of objects to look up
        """
        if not names:
            return list(container)

        return [cls.get_obj(container, name) for name in names]


    @classmethod
    def list_obj_attrs(cls, container, attr, view=True):
        """
        Returns a list of attributes inside of container.

        Args:
            container (obj):  Container object
            attr (str):       Name of attribute within Container
            view (bool):      True appends view attribute to Container
        """
        if view:
            return [getattr(obj, attr) for obj in container.view]

        return [getattr(obj, attr) for obj in container]


    @classmethod
    def get_controllers(cls, obj):
        """
        Returns the SCSI controllers on a VirtualMachine keyed by bus number.

        Args:
            obj (obj): VirtualMachine object

        Returns:
            controllers (dict): busNumber as key, controller device as value.
        """
        controllers = {}

        for device in obj.config.hardware.device:
            if isinstance(device, vim.vm.device.VirtualSCSIController):
                controllers.update({device.busNumber : device})

        return controllers


    @classmethod
    def get_used_slots(cls, obj):
        """
        Returns every (bus, unit) slot that is taken on the SCSI controllers of
        a VirtualMachine.  The controller occupies its own unit as well.

        Args:
            obj (obj): VirtualMachine object

        Returns:
            slots (set): A set of (busNumber, unitNumber) tuples.
        """
        controllers = cls.get_controllers(obj)
        bus_by_key = dict((ctrl.key, bus) for bus, ctrl in controllers.items())
        slots = set()

        for bus, ctrl in controllers.items():
            if ctrl.scsiCtlrUnitNumber is not None:
                slots.add((bus, ctrl.scsiCtlrUnitNumber))

        for device in obj.config.hardware.device:
            if device.controllerKey in bus_by_key and device.unitNumber is not None:
                slots.add((bus_by_key[device.controllerKey], device.unitNumber))

        return slots


    @classmethod
    def vm_datastore(cls, obj):
        """
        Returns the name of the datastore that holds the vmx file.

        Args:
            obj (obj): VirtualMachine object

        Returns:
            datastore (str): Name of the datastore
        """
        match = re.match(r'^\[(?P<datastore>[^\]]+)\]', obj.config.files.vmPathName)

        if not match:
            raise ValueError(
                'unable to determine datastore for %s from %s' % (
                    obj.name, obj.config.files.vmPathName
                )
            )

        return match.group('datastore')
