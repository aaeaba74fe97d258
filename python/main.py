#!/usr/bin/env python3
"""Run the ECR asset cleaner from a source checkout: python python/main.py --dryrun=false"""

import sys

from ecr_cleaner.cli import main

if __name__ == "__main__":
    sys.exit(main())
