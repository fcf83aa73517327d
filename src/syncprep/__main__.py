from syncprep.cli import main

raise SystemExit(main())
