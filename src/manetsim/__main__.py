import sys

from manetsim.cli import main

sys.exit(main())
