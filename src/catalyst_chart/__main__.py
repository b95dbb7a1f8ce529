from catalyst_chart.cli import main

raise SystemExit(main())
