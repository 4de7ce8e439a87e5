import argparse
import base64
import os
import sys
import time
from datetime import datetime
from urllib.parse import quote

import cv2
import requests


def print_inventory(inventory):
    print(f"Inventory ({inventory['total_count']} items):")
    for item in inventory["items"]:
        print(f"  {item['display_name']:<30} {item['quantity']}")


def add_from_image(image_path, server_url="http://localhost:8026", as_frame=False, show=False, output_dir=None):
    """
    Send an image to the pantry tracker and print what was added.

    Args:
        image_path (str): Path to the image
        server_url (str): URL of the pantry tracker service
        as_frame (bool): Send as a base64 camera frame instead of a file upload
        show (bool): Display the image with detection boxes
        output_dir (str): Directory to save the annotated image, if any

    Returns:
        tuple: (response json or None, response_time)
    """
    start_time = time.time()
    image = cv2.imread(image_path)
    if image is None:
        raise ValueError(f"Could not load image from {image_path}")

    if as_frame:
        _, buffer = cv2.imencode('.jpg', image)
        encoded_image = base64.b64encode(buffer).decode('utf-8')
        print(f"Sending frame to {server_url}/inventory/detect/frame")
        response = requests.post(
            f"{server_url}/inventory/detect/frame",
            json={"frame": f"data:image/jpeg;base64,{encoded_image}"},
        )
    else:
        print(f"Uploading {image_path} to {server_url}/inventory/detect/upload")
        with open(image_path, "rb") as f:
            response = requests.post(
                f"{server_url}/inventory/detect/upload",
                files={"file": (os.path.basename(image_path), f, "application/octet-stream")},
            )

    response_time = time.time() - start_time
    if response.status_code != 200:
        print(f"Error: {response.status_code}")
        print(response.json().get("detail", response.text))
        return None, response_time

    result = response.json()
    print(f"Detected {len(result['detections'])} objects in {response_time:.3f} seconds")
    for label in result["applied_labels"]:
        print(f"  + {label}")
    print_inventory(result["inventory"])

    if show or output_dir:
        output_image = image.copy()
        for detection in result["detections"]:
            box = detection["bounding_box"]
            x1, y1 = int(box["x"]), int(box["y"])
            x2, y2 = int(box["x"] + box["width"]), int(box["y"] + box["height"])
            cv2.rectangle(output_image, (x1, y1), (x2, y2), (0, 255, 0), 2)
            cv2.putText(output_image, f"{detection['label']}: {detection['confidence']:.2f}",
                        (x1, max(y1 - 5, 10)), cv2.FONT_HERSHEY_SIMPLEX, 0.5, (0, 255, 0), 2)
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            output_filename = os.path.join(output_dir, f"detection_{timestamp}.jpg")
            cv2.imwrite(output_filename, output_image)
            print(f"Results saved to {output_filename}")
        if show:
            cv2.imshow("Detected items", output_image)
            cv2.waitKey(0)
            cv2.destroyAllWindows()

    return result, response_time


def check_server_health(server_url="http://localhost:8026"):
    """Check the health of the pantry tracker service"""
    try:
        response = requests.get(f"{server_url}/health")
    except requests.RequestException as e:
        print(f"Error connecting to server: {e}")
        return False
    if response.status_code != 200:
        print(f"Health check failed with status code {response.status_code}")
        return False
    print("Server health check:")
    for key, value in response.json().items():
        print(f"  {key}: {value}")
    return True


def change_item(server_url, name, remove=False):
    if remove:
        response = requests.delete(f"{server_url}/inventory/items/{quote(name, safe='')}")
    else:
        response = requests.post(f"{server_url}/inventory/items", json={"name": name})
    if response.status_code not in (200, 201):
        print(f"Error: {response.status_code} {response.json().get('detail')}")
        return False
    result = response.json()
    print(f"{result['name']}: {result['quantity']}")
    return True


def main():
    parser = argparse.ArgumentParser(description="Talk to a running pantry tracker service")
    parser.add_argument("--url", default="http://localhost:8026", help="URL of the pantry tracker service")
    parser.add_argument("--health", action="store_true", help="Check server health")
    parser.add_argument("--image", help="Image to detect items in")
    parser.add_argument("--as-frame", action="store_true", help="Send the image as a base64 camera frame")
    parser.add_argument("--show", action="store_true", help="Display detections")
    parser.add_argument("--output-dir", help="Directory to save annotated images")
    parser.add_argument("--add", metavar="NAME", help="Add one item by name")
    parser.add_argument("--remove", metavar="NAME", help="Remove one item by name")
    parser.add_argument("--search", metavar="QUERY", help="List inventory matching QUERY")
    args = parser.parse_args()

    if args.health:
        check_server_health(args.url)
    if args.add:
        change_item(args.url, args.add)
    if args.remove:
        change_item(args.url, args.remove, remove=True)
    if args.image:
        add_from_image(args.image, args.url, as_frame=args.as_frame, show=args.show, output_dir=args.output_dir)
    if args.search is not None:
        response = requests.get(f"{args.url}/inventory", params={"q": args.search})
        print_inventory(response.json())


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\nProgram interrupted. Exiting...")
        cv2.destroyAllWindows()
        sys.exit(0)
