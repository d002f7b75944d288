from intune_assign import main


if __name__ == "__main__":
    main()
