from doug.cli import main

raise SystemExit(main())
