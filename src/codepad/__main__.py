import sys

from codepad.cli import main

sys.exit(main())
