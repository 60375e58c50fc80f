import sys

from sssl.cli import main

sys.exit(main())
