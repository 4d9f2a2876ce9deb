import sys

from streambench.main import main


sys.exit(main())
