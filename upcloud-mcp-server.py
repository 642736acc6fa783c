#!/usr/bin/env python3
"""
UpCloud API - MCP Server Wrapper

Runs the MCP server straight from a source checkout without installing the
package. Installed deployments use the `upcloud-mcp-server` entry point instead.

Domain modules registered on the server:
  * configuration - Connection setup
  * account - Account information, plans and server sizes
  * servers - Server lifecycle and state waiting
  * storage - Storages, backups, templates and clones
  * networking - Firewall rules, tags and IP addresses
"""

from src.upcloud_api.main import main

if __name__ == "__main__":
    main()
