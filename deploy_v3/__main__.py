#!/usr/bin/env python3
"""
Main execution module for the Uniswap V3 deployment tool
"""

from deploy_v3.cli.commands import main

if __name__ == "__main__":
    main()
