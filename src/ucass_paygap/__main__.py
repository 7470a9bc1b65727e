from ucass_paygap.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
