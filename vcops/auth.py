#!/usr/bin/env python
# vim: ts=4 sw=4 et
"""Authentication Class for vcops."""
import functools
import os
import subprocess
from getpass import getpass, getuser
import ssl
import requests
from pyVim.connect import SmartConnect, Disconnect
from pyVmomi import vim # pylint: disable=no-name-in-module
from vcops import Logger

# disable SSL warnings
requests.packages.urllib3.disable_warnings()


def check_session(func):
    """Decorator used to verify an authenticated session before an API call."""
    @functools.wraps(func)
    def _check(self, *args, **kwargs):
        """Checks to see if the auth attribute holds a session."""
        auth = getattr(self, 'auth', None)
        if not auth or not auth.session:
            raise ValueError('not connected to any server')
        return func(self, *args, **kwargs)
    return _check


class Auth(Logger):
    """Authentication Class."""
    def __init__(self, host=None, port=443):
        """
        Args:
            host (str): This string is the vSphere host host.
            port (int): Port to connect to host.
        """
        self.host = host
        self.port = port
        self.session = None
        self.ticket = None

    @classmethod
    def decrypt_gpg_file(cls, passwd_file):
        """
        Decrypts a gpg file containing a password for auth.

        Args:
            passwd_file (str): Name of file that contains an encrypted passwd.
                Path should be included if file resides outside of module.
        """
        passwd_file = os.path.expanduser(passwd_file)

        if not os.path.isfile(passwd_file):
            raise ValueError('passwd file %s not found.' % (passwd_file))

        command = ['gpg', '--quiet', '--decrypt', passwd_file]
        decrypt = subprocess.Popen(command, stdout=subprocess.PIPE)
        output = decrypt.communicate()[0].strip()

        if decrypt.returncode != 0:
            raise ValueError('unable to decrypt %s' % (passwd_file))

        return output.decode('utf-8')

    @classmethod
    def credential(cls, user=None, domain=None):
        """
        Returns the login name, prefixed with the domain when one is given.
        Falls back to the local username.
        """
        if not user:
            user = getuser()

        if domain:
            return domain + '\\' + user

        return user

    def login(self, user=None, passwd=None, domain=None, passwd_file=None, sslcontext=None):
        """
        Login to vSphere host

        Args:
            user (str):        Username
            passwd (str):      Password
            domain (str):      Domain name
            passwd_file (str): Name of file that contains an encrypted passwd.
                Path should be included if file resides outside of module.
            sslcontext (obj):  SSL context used if certificate validation fails.
        """
        user = self.credential(user, domain)

        if not passwd:
            if passwd_file:
                passwd = self.decrypt_gpg_file(passwd_file)
            else:
                passwd = getpass('%s@%s password: ' % (user, self.host))

        try:
            self.session = SmartConnect(
                host=self.host, user=user, pwd=passwd, port=self.port
            )

        # https://www.python.org/dev/peps/pep-0476/
        except ssl.SSLError:
            self.logger.info('%s certificate not verified', self.host)
            context = sslcontext or ssl._create_unverified_context() # pylint: disable=W0212
            self.session = SmartConnect(
                host=self.host, user=user, pwd=passwd, port=self.port, sslContext=context
            )

        except vim.fault.InvalidLogin:
            self.logger.error('%s %s login failed', user, self.host)
            raise

        finally:
            passwd = None

        session_mgr = self.session.content.sessionManager
        self.ticket = session_mgr.AcquireCloneTicket()
        self.logger.info('%s %s success', user, self.host)

    def about(self):
        """
        Returns information about the connected server.

        Returns:
            info (dict): server name, version and logged in user.
        """
        if not self.session:
            raise ValueError('not connected to any server')

        about = self.session.content.about
        current = self.session.content.sessionManager.currentSession

        return {
            'server' : self.host,
            'product' : about.fullName,
            'api_version' : about.apiVersion,
            'instance_uuid' : about.instanceUuid,
            'user' : current.userName if current else None,
        }

    def logout(self):
        """Logout of vSphere."""
        if self.session:
            Disconnect(self.session)
            self.session = None
            self.ticket = None
            self.logger.info('%s successful', self.host)
