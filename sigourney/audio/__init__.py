"""The audio engine and its signal processors."""