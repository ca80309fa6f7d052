import sys

from computation.cli import main

sys.exit(main())
