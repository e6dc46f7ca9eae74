"""VaultGuard Meta information.
   VaultGuard keeps a local collection of credentials sealed under a
   key stretched from a single master passphrase.
"""
__title__ = 'vaultguard'
__description__ = (
   'Local encrypted credential vault: PBKDF2 key stretching, '
   'AES-GCM sealing and a single opaque stored envelope.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2024 VaultGuard Developers'
__author__ = 'VaultGuard Developers'
__author_email__ = 'dev@vaultguard.local'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/vaultguard/vaultguard'
