import argparse
import logging

from PeopleCounter import PeopleCounter


def main():
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    parser = argparse.ArgumentParser(description='Count people crossing a line in a video feed')
    parser.add_argument('--config', type=str, default='config.json', help='Path to the JSON configuration file')
    parser.add_argument('--source', type=str, default='0',
                        help='Webcam index, video file path or stream URL')
    parser.add_argument('--camera-id', type=str, default=None, help='Camera identifier used in count logs')
    args = parser.parse_args()

    video_controller = PeopleCounter(args.config, camera_id=args.camera_id)
    try:
        video_controller.start(args.source)
    except KeyboardInterrupt:
        video_controller.stop()

    print("Entry Count:", video_controller.get_entry_count())
    print("Exit Count:", video_controller.get_exit_count())
    print("Total Count:", video_controller.get_total_count())


if __name__ == "__main__":
    main()
