"""
cjdnsctl - command-line client for the cjdns admin interface
"""
