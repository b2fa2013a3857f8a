from gitsnap.cli import main

raise SystemExit(main())
