from csvconsolidate.cli.app import main

main()
