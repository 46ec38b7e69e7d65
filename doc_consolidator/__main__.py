from doc_consolidator.app import main


if __name__ == "__main__":
    main()
