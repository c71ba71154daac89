import sys

from wray_agarwal.cli import main

sys.exit(main())
