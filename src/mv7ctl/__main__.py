import sys

from mv7ctl.cli import main

sys.exit(main())
