from telemerge.cli import main

main()
