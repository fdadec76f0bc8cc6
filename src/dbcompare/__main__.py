from dbcompare.cli import main

main()
